from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DomainCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None
    is_custom: bool = True


class DomainUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None


class DomainOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_custom: bool = False
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
