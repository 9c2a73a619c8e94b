# dealer_monitor/shared/schemas/common.py
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional
from datetime import datetime


class BaseResponse(BaseModel):
    success: bool
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)


class ErrorResponse(BaseResponse):
    success: bool = False
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class CamelModel(BaseModel):
    """Base for payloads exchanged with the marketplace in camelCase"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        coerce_numbers_to_str = True
