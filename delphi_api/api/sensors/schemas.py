from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SensorBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    category: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator("name", "category", mode="before")
    @classmethod
    def strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class SensorCreate(SensorBase):
    is_custom: bool = True


class SensorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class SensorOut(BaseModel):
    id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    is_custom: bool = False
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
