# dealer_monitor/modules/export/__init__.py
"""
Export module - CSV downloads for the dashboard

- router.py: /export endpoint
- service.py: CSV building and marketplace export relay
"""

from .router import router
from .service import ExportService

__all__ = [
    "router",
    "ExportService",
]
