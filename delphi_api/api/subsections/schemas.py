from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from delphi_api.api.sensors.schemas import SensorOut


class SubsectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    time: int = Field(..., gt=0)
    rating: Optional[float] = Field(None, ge=0, le=10)
    description: Optional[str] = None
    additional_notes: Optional[str] = None
    type: Literal["subsection", "break"] = "subsection"
    is_public: bool = False


class SubsectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    time: Optional[int] = Field(None, gt=0)
    rating: Optional[float] = Field(None, ge=0, le=10)
    description: Optional[str] = None
    additional_notes: Optional[str] = None
    enabled: Optional[bool] = None
    is_public: Optional[bool] = None


class SubsectionOut(BaseModel):
    id: str
    title: str
    time: int
    rating: Optional[float] = None
    description: Optional[str] = None
    additional_notes: Optional[str] = None
    enabled: bool = True
    type: str = "subsection"
    is_public: bool = False
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class SubsectionWithSensors(SubsectionOut):
    sensors: List[SensorOut] = []
