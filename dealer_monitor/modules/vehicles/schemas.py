from pydantic import BaseModel
from typing import Optional


class VehicleLinkResponse(BaseModel):
    vrm: str
    link: Optional[str] = None
