# dealer_monitor/modules/dealers/__init__.py
"""
Dealers module - dealer listing health

- Dealers with merged listing overview, searchable and sortable
- Dashboard totals across all dealers
- Per-dealer drill-down: detail, issues, vehicles
- Lead reports

Layout:
- router.py: FastAPI endpoints
- service.py: merging, filtering and aggregation
- schemas.py: response models
"""

from .router import router
from .service import DealersService

__all__ = [
    "router",
    "DealersService",
]
