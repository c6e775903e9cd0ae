from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, StrictInt

from delphi_api.api.sensors.schemas import SensorOut
from delphi_api.api.subsections.schemas import SubsectionOut

POSITION_ALIASES = AliasChoices("position", "order_index", "orderIndex")


class SectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    enabled: bool = True
    is_public: bool = False


class SectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    enabled: Optional[bool] = None
    is_public: Optional[bool] = None


class SectionOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    enabled: bool = True
    is_public: bool = False
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


# ---------------------------
# Ordered membership payloads (shared with protocols)
# ---------------------------

class MembershipInsert(BaseModel):
    position: Optional[StrictInt] = Field(None, validation_alias=POSITION_ALIASES)
    copy_defaults: bool = True


class MembershipMove(BaseModel):
    position: StrictInt = Field(..., validation_alias=POSITION_ALIASES)


class BulkReorder(BaseModel):
    """Child id -> new position, covering every member."""
    assignments: Dict[str, StrictInt]


class SectionSubsectionOut(BaseModel):
    membership_id: str
    order_index: int
    subsection: SubsectionOut
    sensors: List[SensorOut] = []
