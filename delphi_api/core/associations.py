"""
Copy a child's default attribute associations (sensors, domains) into the
membership-scoped tables when the child is attached to a parent, so that
per-parent edits start from the child's defaults.
"""
import logging
from dataclasses import dataclass

from sqlalchemy import insert, literal, select
from sqlalchemy.orm import Session

from delphi_api.db.models import TaskSensor, TaskDomain
from delphi_api.db.models.protocol import (
    ProtocolTaskSensor,
    ProtocolTaskDomain,
    SubsectionSensor,
    SectionSubsectionSensor,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssociationKind:
    name: str
    source: type          # child-level association model, e.g. TaskSensor
    source_child: str     # column on `source` holding the child id
    target: type          # membership-level association model
    target_membership: str
    attribute: str        # shared column naming the associated entity

    def source_column(self, name):
        return getattr(self.source, name)

    def target_column(self, name):
        return getattr(self.target, name)


PROTOCOL_TASK_SENSORS = AssociationKind(
    "sensors", TaskSensor, "task_id", ProtocolTaskSensor, "protocol_task_id", "sensor_id")
PROTOCOL_TASK_DOMAINS = AssociationKind(
    "domains", TaskDomain, "task_id", ProtocolTaskDomain, "protocol_task_id", "domain_id")
SECTION_SUBSECTION_SENSORS = AssociationKind(
    "sensors", SubsectionSensor, "subsection_id", SectionSubsectionSensor, "section_subsection_id", "sensor_id")


def copy_default_associations(db: Session, membership_id: str, child_id: str, kind: AssociationKind) -> int:
    """
    Insert one membership-level row per child-level association of `kind`.
    Rows already present for the membership are skipped, so calling this twice
    is harmless. Runs in the caller's transaction and never commits.
    """
    attribute = kind.source_column(kind.attribute)
    already_copied = (
        select(kind.target_column(kind.attribute))
        .where(kind.target_column(kind.target_membership) == membership_id)
    )
    rows = (
        select(literal(membership_id), attribute)
        .where(kind.source_column(kind.source_child) == child_id)
        .where(attribute.not_in(already_copied))
    )
    stmt = insert(kind.target).from_select([kind.target_membership, kind.attribute], rows)
    result = db.execute(stmt)
    copied = result.rowcount if result.rowcount is not None and result.rowcount >= 0 else 0
    logger.debug("Copied %d default %s from %s into membership %s", copied, kind.name, child_id, membership_id)
    return copied
