from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from delphi_api.api.domains.schemas import DomainOut
from delphi_api.api.sensors.schemas import SensorOut


class TaskFields(BaseModel):
    time: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=10)
    description: Optional[str] = Field(None, max_length=1000)
    additional_notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("description", "additional_notes", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() or None if isinstance(value, str) else value


class TaskCreate(TaskFields):
    title: str = Field(..., min_length=2, max_length=255)
    type: Literal["task", "break"] = "task"

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value


class TaskUpdate(TaskFields):
    title: Optional[str] = Field(None, min_length=2, max_length=255)
    enabled: Optional[bool] = None


class TaskOut(BaseModel):
    id: str
    title: str
    time: Optional[int] = None
    rating: Optional[float] = None
    description: Optional[str] = None
    additional_notes: Optional[str] = None
    enabled: bool = True
    type: str = "task"
    is_custom: bool = False
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class TaskWithRelations(TaskOut):
    sensors: List[SensorOut] = []
    domains: List[DomainOut] = []
