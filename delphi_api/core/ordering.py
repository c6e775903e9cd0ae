"""
Ordering engine for the parent/child join tables that carry an `order_index`
(protocol_tasks, section_subsections, protocol_sections).

For every parent the indices of its memberships are kept dense and unique:
exactly ORDER_BASE .. ORDER_BASE + N - 1 after each successful operation.
Each mutating operation runs as a single transaction and is rolled back as a
whole on failure.

Multi-row reindexing never goes through an intermediate state that would
violate UNIQUE(parent_id, order_index), even on engines that check the
constraint row by row: affected rows are first parked in the negative range
(`-target - 1`) and then all parked rows are flipped back in one statement.
"""
import logging
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy import case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from delphi_api.core.associations import (
    AssociationKind,
    PROTOCOL_TASK_SENSORS,
    PROTOCOL_TASK_DOMAINS,
    SECTION_SUBSECTION_SENSORS,
    copy_default_associations,
)
from delphi_api.core.errors import AppError, ConflictError, DatabaseError, NotFoundError, ValidationError
from delphi_api.db.models import Task
from delphi_api.db.models.protocol import (
    Protocol,
    ProtocolTask,
    Section,
    SectionSubsection,
    Subsection,
    ProtocolSection,
)
from delphi_api.db.session import atomic

logger = logging.getLogger(__name__)

ORDER_BASE = 0


@dataclass(frozen=True)
class OrderedRelation:
    name: str
    membership: type
    parent: type
    child: type
    parent_key: str
    child_key: str
    parent_label: str
    child_label: str
    copies: Tuple[AssociationKind, ...] = ()
    # membership columns the engine owns; never settable through **fields
    reserved: Tuple[str, ...] = field(default=("id", "order_index", "created_at", "updated_at"))


PROTOCOL_TASKS = OrderedRelation(
    name="protocol_tasks",
    membership=ProtocolTask,
    parent=Protocol,
    child=Task,
    parent_key="protocol_id",
    child_key="task_id",
    parent_label="Protocol",
    child_label="Task",
    copies=(PROTOCOL_TASK_SENSORS, PROTOCOL_TASK_DOMAINS),
)

SECTION_SUBSECTIONS = OrderedRelation(
    name="section_subsections",
    membership=SectionSubsection,
    parent=Section,
    child=Subsection,
    parent_key="section_id",
    child_key="subsection_id",
    parent_label="Section",
    child_label="Subsection",
    copies=(SECTION_SUBSECTION_SENSORS,),
)

PROTOCOL_SECTIONS = OrderedRelation(
    name="protocol_sections",
    membership=ProtocolSection,
    parent=Protocol,
    child=Section,
    parent_key="protocol_id",
    child_key="section_id",
    parent_label="Protocol",
    child_label="Section",
)

RELATIONS = (PROTOCOL_TASKS, SECTION_SUBSECTIONS, PROTOCOL_SECTIONS)


# ---------------------------
# Typed results
# ---------------------------

@dataclass(frozen=True)
class MembershipRecord:
    id: str
    parent_id: str
    child_id: str
    order_index: int

    @classmethod
    def from_row(cls, relation: OrderedRelation, row) -> "MembershipRecord":
        order_index = row.order_index
        if not isinstance(order_index, int):
            raise DatabaseError(f"Corrupt {relation.name} row {row.id}: order_index={order_index!r}")
        return cls(
            id=row.id,
            parent_id=getattr(row, relation.parent_key),
            child_id=getattr(row, relation.child_key),
            order_index=order_index,
        )


@dataclass(frozen=True)
class InsertResult:
    membership_id: str
    position: int
    copied: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MoveResult:
    membership_id: str
    from_position: int
    to_position: int
    moved: bool


@dataclass(frozen=True)
class RemoveResult:
    membership_id: str
    position: int


@dataclass(frozen=True)
class ReorderResult:
    updated: int


@dataclass(frozen=True)
class ResequenceResult:
    updated: int
    total: int


def _require_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", {"field": name, "value": value})
    return value


class OrderingEngine:
    """
    Ordered membership operations for one relation, bound to a session.

    With `autocommit=True` (the default) each public operation is its own
    transaction. With `autocommit=False` the caller owns the transaction and
    the engine only flushes, so several operations can be composed atomically
    inside `atomic(db)`.
    """

    def __init__(self, db: Session, relation: OrderedRelation, autocommit: bool = True):
        self.db = db
        self.relation = relation
        self.autocommit = autocommit

    # ---------------------------
    # Column helpers
    # ---------------------------

    @property
    def _model(self):
        return self.relation.membership

    @property
    def _parent_col(self):
        return getattr(self._model, self.relation.parent_key)

    @property
    def _child_col(self):
        return getattr(self._model, self.relation.child_key)

    @property
    def _index_col(self):
        return self._model.order_index

    def _members(self, parent_id):
        return self.db.query(self._model).filter(self._parent_col == parent_id)

    def _count(self, parent_id) -> int:
        return self._members(parent_id).count()

    def _membership(self, parent_id, child_id):
        return self._members(parent_id).filter(self._child_col == child_id).first()

    def _require_parent(self, parent_id):
        if self.db.get(self.relation.parent, parent_id) is None:
            raise NotFoundError(self.relation.parent_label, {"id": parent_id})

    def _require_membership(self, parent_id, child_id):
        membership = self._membership(parent_id, child_id)
        if membership is None:
            raise NotFoundError(
                self.relation.child_label,
                {self.relation.parent_key: parent_id, self.relation.child_key: child_id},
                message=f"{self.relation.child_label} not found in {self.relation.parent_label.lower()}",
            )
        return membership

    # ---------------------------
    # Collision-free reindexing
    # ---------------------------

    def _park(self, parent_id, criteria, target) -> int:
        """Move rows matching `criteria` to the parked slot of `target`."""
        return (
            self._members(parent_id)
            .filter(criteria)
            .update({self._index_col: -target - 1}, synchronize_session=False)
        )

    def _unpark(self, parent_id) -> int:
        index = self._index_col
        return (
            self._members(parent_id)
            .filter(index < 0)
            .update({index: -index - 1}, synchronize_session=False)
        )

    def _shift(self, parent_id, lower: int, upper: Optional[int], delta: int) -> int:
        """Add `delta` to every index in [lower, upper] (upper=None: unbounded)."""
        index = self._index_col
        criteria = index >= lower if upper is None else index.between(lower, upper)
        return self._park(parent_id, criteria, index + delta)

    def _assign(self, parent_id, targets: Mapping[str, int]) -> int:
        """Set order_index per membership id with one CASE statement."""
        if not targets:
            return 0
        parked = case({mid: -idx - 1 for mid, idx in targets.items()}, value=self._model.id)
        updated = (
            self._members(parent_id)
            .filter(self._model.id.in_(list(targets)))
            .update({self._index_col: parked}, synchronize_session=False)
        )
        self._unpark(parent_id)
        return updated

    @contextmanager
    def _transaction(self, action: str):
        if not self.autocommit:
            yield
            return
        try:
            with atomic(self.db):
                yield
        except AppError:
            raise
        except IntegrityError as exc:
            raise ConflictError(
                f"Could not {action}: the {self.relation.parent_label.lower()} was modified concurrently, retry the request",
                {"relation": self.relation.name},
            ) from exc
        except SQLAlchemyError as exc:
            raise DatabaseError(
                f"Failed to {action}",
                {"relation": self.relation.name, "cause": str(getattr(exc, "orig", None) or exc)},
                cause=exc,
            ) from exc
        except Exception as exc:
            raise DatabaseError(
                f"Failed to {action}",
                {"relation": self.relation.name, "cause": repr(exc)},
                cause=exc,
            ) from exc

    # ---------------------------
    # Reads
    # ---------------------------

    def list_memberships(self, parent_id) -> List[MembershipRecord]:
        rows = self._members(parent_id).order_by(self._index_col, self._model.id).all()
        return [MembershipRecord.from_row(self.relation, row) for row in rows]

    # ---------------------------
    # Operations
    # ---------------------------

    def insert_at_position(self, parent_id, child_id, position: Optional[int] = None, *,
                           copy_defaults: bool = True, **fields) -> InsertResult:
        rel = self.relation

        with self._transaction(f"add {rel.child_label.lower()} to {rel.parent_label.lower()}"):
            self._require_parent(parent_id)
            if self.db.get(rel.child, child_id) is None:
                raise NotFoundError(rel.child_label, {"id": child_id})
            if self._membership(parent_id, child_id) is not None:
                raise ConflictError(
                    f"{rel.child_label} is already added to this {rel.parent_label.lower()}",
                    {rel.parent_key: parent_id, rel.child_key: child_id},
                )

            unknown = sorted(
                name for name in fields
                if name in rel.reserved or name in (rel.parent_key, rel.child_key)
                or name not in self._model.__table__.columns
            )
            if unknown:
                raise ValidationError(f"Unknown {rel.name} fields", {"fields": unknown})

            count = self._count(parent_id)
            if position is None:
                position = ORDER_BASE + count
            position = _require_int(position, "position")
            if not ORDER_BASE <= position <= ORDER_BASE + count:
                raise ValidationError(
                    f"Invalid position. Must be between {ORDER_BASE} and {ORDER_BASE + count}",
                    {"field": "position", "value": position, "min": ORDER_BASE, "max": ORDER_BASE + count},
                )

            self._shift(parent_id, position, None, 1)
            self._unpark(parent_id)

            membership = rel.membership(
                **{rel.parent_key: parent_id, rel.child_key: child_id, "order_index": position},
                **fields,
            )
            self.db.add(membership)
            self.db.flush()

            copied = {}
            if copy_defaults:
                for kind in rel.copies:
                    copied[kind.name] = copy_default_associations(self.db, membership.id, child_id, kind)

            result = InsertResult(membership_id=membership.id, position=position, copied=copied)

        logger.info("%s: inserted %s=%s into %s=%s at %d",
                    rel.name, rel.child_key, child_id, rel.parent_key, parent_id, position)
        return result

    def append(self, parent_id, child_id, *, copy_defaults: bool = True, **fields) -> InsertResult:
        return self.insert_at_position(parent_id, child_id, None, copy_defaults=copy_defaults, **fields)

    def move_position(self, parent_id, child_id, new_position: int) -> MoveResult:
        rel = self.relation
        new_position = _require_int(new_position, "position")

        with self._transaction(f"move {rel.child_label.lower()}"):
            membership = self._require_membership(parent_id, child_id)
            current = membership.order_index
            count = self._count(parent_id)
            last = ORDER_BASE + count - 1
            if not ORDER_BASE <= new_position <= last:
                raise ValidationError(
                    f"Invalid position. Must be between {ORDER_BASE} and {last}",
                    {"field": "position", "value": new_position, "min": ORDER_BASE, "max": last},
                )

            if new_position == current:
                return MoveResult(membership.id, current, new_position, moved=False)

            self._park(parent_id, self._model.id == membership.id, new_position)
            if current < new_position:
                self._shift(parent_id, current + 1, new_position, -1)
            else:
                self._shift(parent_id, new_position, current - 1, 1)
            self._unpark(parent_id)

            result = MoveResult(membership.id, current, new_position, moved=True)

        logger.info("%s: moved %s=%s in %s=%s from %d to %d",
                    rel.name, rel.child_key, child_id, rel.parent_key, parent_id, current, new_position)
        return result

    def remove_membership(self, parent_id, child_id) -> RemoveResult:
        rel = self.relation

        with self._transaction(f"remove {rel.child_label.lower()} from {rel.parent_label.lower()}"):
            membership = self._require_membership(parent_id, child_id)
            membership_id, position = membership.id, membership.order_index

            # membership-scoped associations go with it via ON DELETE CASCADE
            self.db.delete(membership)
            self.db.flush()

            self._shift(parent_id, position + 1, None, -1)
            self._unpark(parent_id)

            result = RemoveResult(membership_id, position)

        logger.info("%s: removed %s=%s from %s=%s at %d",
                    rel.name, rel.child_key, child_id, rel.parent_key, parent_id, position)
        return result

    def bulk_reorder(self, parent_id, assignments: Mapping[str, int]) -> ReorderResult:
        """
        Apply a complete new ordering. `assignments` maps child id to its new
        index and must cover every member of the parent with exactly the
        indices ORDER_BASE..ORDER_BASE+N-1; partial reorders are rejected.
        """
        rel = self.relation
        if not assignments:
            raise ValidationError("Assignments must be a non-empty mapping of child id to position")
        for child_id, position in assignments.items():
            _require_int(position, f"position[{child_id}]")
            if position < 0:
                raise ValidationError("Positions must not be negative", {"field": f"position[{child_id}]", "value": position})

        with self._transaction(f"reorder {rel.parent_label.lower()}"):
            self._require_parent(parent_id)
            members = {getattr(m, rel.child_key): m for m in self._members(parent_id).all()}

            missing = sorted(cid for cid in assignments if cid not in members)
            if missing:
                raise NotFoundError(
                    rel.child_label,
                    {"missing": missing},
                    message=f"Some {rel.child_label.lower()}s were not found in {rel.parent_label.lower()}",
                )

            expected = list(range(ORDER_BASE, ORDER_BASE + len(members)))
            unassigned = sorted(cid for cid in members if cid not in assignments)
            duplicates = sorted(idx for idx, n in Counter(assignments.values()).items() if n > 1)
            if unassigned or sorted(assignments.values()) != expected:
                raise ConflictError(
                    f"Positions must be unique, sequential from {ORDER_BASE} "
                    f"and cover every {rel.child_label.lower()} in the {rel.parent_label.lower()}",
                    {
                        "unassigned": unassigned,
                        "duplicates": duplicates,
                        "expected_range": [ORDER_BASE, ORDER_BASE + len(members) - 1],
                    },
                )

            targets = {members[cid].id: idx for cid, idx in assignments.items()}
            updated = self._assign(parent_id, targets)

        logger.info("%s: reordered %d memberships of %s=%s", rel.name, updated, rel.parent_key, parent_id)
        return ReorderResult(updated=updated)

    def resequence(self, parent_id) -> ResequenceResult:
        """Reassign dense indices following the current relative order."""
        rel = self.relation

        with self._transaction(f"resequence {rel.parent_label.lower()}"):
            self._require_parent(parent_id)
            current = self.list_memberships(parent_id)
            targets = {
                record.id: ORDER_BASE + i
                for i, record in enumerate(current)
                if record.order_index != ORDER_BASE + i
            }
            updated = self._assign(parent_id, targets)

        if updated:
            logger.info("%s: resequenced %s=%s (%d of %d rows changed)",
                        rel.name, rel.parent_key, parent_id, updated, len(current))
        return ResequenceResult(updated=updated, total=len(current))


def delete_child(db: Session, child) -> Dict[str, List[str]]:
    """
    Delete a child entity (task, subsection, section) in one transaction.
    Its memberships disappear through ON DELETE CASCADE; every parent that
    lost one is resequenced so its indices stay dense. Returns the affected
    parent ids per relation.
    """
    relations = [rel for rel in RELATIONS if isinstance(child, rel.child)]
    affected: Dict[str, List[str]] = {}

    try:
        with atomic(db):
            for rel in relations:
                parent_col = getattr(rel.membership, rel.parent_key)
                child_col = getattr(rel.membership, rel.child_key)
                rows = db.query(parent_col).filter(child_col == child.id).distinct().all()
                affected[rel.name] = [parent_id for (parent_id,) in rows]

            db.delete(child)
            db.flush()

            for rel in relations:
                engine = OrderingEngine(db, rel, autocommit=False)
                for parent_id in affected[rel.name]:
                    engine.resequence(parent_id)
    except SQLAlchemyError as exc:
        raise DatabaseError("Failed to delete resource", {"cause": str(getattr(exc, "orig", None) or exc)},
                            cause=exc) from exc

    return affected
