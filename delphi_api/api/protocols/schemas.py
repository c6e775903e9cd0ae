from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt, field_validator

from delphi_api.api.domains.schemas import DomainOut
from delphi_api.api.sections.schemas import (  # noqa: F401
    POSITION_ALIASES,
    BulkReorder,
    MembershipInsert,
    MembershipMove,
    SectionOut,
    SectionSubsectionOut,
)
from delphi_api.api.sensors.schemas import SensorOut


class ProtocolCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_template: bool = False
    template_protocol_id: Optional[str] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProtocolUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_template: Optional[bool] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProtocolOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_template: bool = False
    template_protocol_id: Optional[str] = None
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


# ---------------------------
# Task memberships
# ---------------------------

class ProtocolTaskFields(BaseModel):
    importance_rating: Optional[float] = Field(None, ge=0, le=10)
    notes: Optional[str] = None
    override_title: Optional[str] = Field(None, max_length=255)
    override_time: Optional[int] = Field(None, ge=0)
    override_description: Optional[str] = None
    override_additional_notes: Optional[str] = None

    @field_validator("override_title", "override_description", "override_additional_notes", mode="before")
    @classmethod
    def blank_is_unset(cls, value):
        # an empty override means "use the task's own value"
        if isinstance(value, str):
            return value.strip() or None
        return value


class ProtocolTaskInsert(MembershipInsert, ProtocolTaskFields):
    pass


class ProtocolTaskUpdate(ProtocolTaskFields):
    pass


class TaskOrder(BaseModel):
    task_id: str
    order_index: StrictInt = Field(..., validation_alias=POSITION_ALIASES)


class TaskReorder(BaseModel):
    task_orders: List[TaskOrder] = Field(..., min_length=1)

    def as_assignments(self) -> dict:
        return {item.task_id: item.order_index for item in self.task_orders}


class ProtocolTaskOut(BaseModel):
    """A task as it appears inside a protocol, overrides applied."""
    protocol_task_id: str
    task_id: str
    order_index: int
    importance_rating: Optional[float] = None
    notes: Optional[str] = None

    title: str
    time: Optional[int] = None
    description: Optional[str] = None
    additional_notes: Optional[str] = None
    type: str
    rating: Optional[float] = None

    has_title_override: bool = False
    has_time_override: bool = False
    has_description_override: bool = False
    has_notes_override: bool = False

    sensors: List[SensorOut] = []
    domains: List[DomainOut] = []


class ProtocolSectionOut(BaseModel):
    membership_id: str
    order_index: int
    section: SectionOut
    subsections: List[SectionSubsectionOut] = []


class ProtocolFull(ProtocolOut):
    tasks: List[ProtocolTaskOut] = []
    sections: List[ProtocolSectionOut] = []
