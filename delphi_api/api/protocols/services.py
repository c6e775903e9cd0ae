import logging
from typing import List

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from delphi_api.api.sections.services import get_section_subsections
from delphi_api.api.sensors.services import MIN_SEARCH_LENGTH
from delphi_api.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from delphi_api.core.ordering import PROTOCOL_SECTIONS, PROTOCOL_TASKS, OrderingEngine
from delphi_api.db.models.protocol import Protocol, ProtocolSection, ProtocolTask
from delphi_api.db.models.user import User
from delphi_api.db.session import atomic
from . import schemas

logger = logging.getLogger(__name__)

OVERRIDE_FIELDS = ("override_title", "override_time", "override_description", "override_additional_notes")
# membership columns carried over when a protocol is created from a template
TEMPLATE_FIELDS = ("importance_rating", "notes") + OVERRIDE_FIELDS


def get_protocols(db: Session, user: User, templates_only: bool = False):
    query = db.query(Protocol)
    if templates_only:
        query = query.filter(Protocol.is_template.is_(True))
    else:
        query = query.filter(or_(Protocol.is_template.is_(True), Protocol.created_by == user.id))
    return query.order_by(Protocol.name).all()


def get_user_protocols(db: Session, user: User):
    return db.query(Protocol).filter(Protocol.created_by == user.id).order_by(Protocol.name).all()


def search_protocols(db: Session, term: str):
    term = term.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search term must be at least {MIN_SEARCH_LENGTH} characters long")
    pattern = f"%{term}%"
    return (
        db.query(Protocol)
        .filter(or_(Protocol.name.ilike(pattern), Protocol.description.ilike(pattern)))
        .order_by(Protocol.name)
        .all()
    )


def get_protocol(db: Session, protocol_id: str) -> Protocol:
    protocol = db.get(Protocol, protocol_id)
    if protocol is None:
        raise NotFoundError("Protocol", {"id": protocol_id})
    return protocol


def get_owned_protocol(db: Session, protocol_id: str, user: User) -> Protocol:
    protocol = get_protocol(db, protocol_id)
    if protocol.created_by != user.id:
        raise AuthorizationError("You can only modify your own protocols")
    return protocol


def _ensure_unique_name(db: Session, name: str, user_id: int, exclude_id: str = None):
    query = db.query(Protocol).filter(Protocol.created_by == user_id, Protocol.name == name)
    if exclude_id is not None:
        query = query.filter(Protocol.id != exclude_id)
    if query.first():
        raise ConflictError(
            "Protocol with this name already exists",
            {"field": "name", "value": name, "details": "Each user can only have one protocol with a given name"},
        )


def create_protocol(db: Session, protocol: schemas.ProtocolCreate, user: User) -> Protocol:
    _ensure_unique_name(db, protocol.name, user.id)

    template = None
    if protocol.template_protocol_id:
        template = get_protocol(db, protocol.template_protocol_id)
        if not template.is_template and template.created_by != user.id:
            raise AuthorizationError("Protocol cannot be used as a template")

    try:
        with atomic(db):
            db_protocol = Protocol(**protocol.model_dump(), created_by=user.id)
            db.add(db_protocol)
            db.flush()

            if template is not None:
                _copy_template_tasks(db, template, db_protocol)
    except IntegrityError:
        raise ConflictError("Protocol with this name already exists", {"field": "name", "value": protocol.name})

    db.refresh(db_protocol)
    logger.info("Created protocol %s for user %s", db_protocol.id, user.id)
    return db_protocol


def _copy_template_tasks(db: Session, template: Protocol, protocol: Protocol):
    """Append the template's tasks in order, inside the caller's transaction."""
    engine = OrderingEngine(db, PROTOCOL_TASKS, autocommit=False)
    memberships = (
        db.query(ProtocolTask)
        .filter(ProtocolTask.protocol_id == template.id)
        .order_by(ProtocolTask.order_index, ProtocolTask.id)
        .all()
    )
    for membership in memberships:
        fields = {name: getattr(membership, name) for name in TEMPLATE_FIELDS}
        engine.append(protocol.id, membership.task_id, **fields)
    logger.info("Copied %d tasks from template %s into protocol %s", len(memberships), template.id, protocol.id)


def update_protocol(db: Session, protocol_id: str, protocol: schemas.ProtocolUpdate, user: User) -> Protocol:
    db_protocol = get_owned_protocol(db, protocol_id, user)
    changes = protocol.model_dump(exclude_unset=True)
    if changes.get("name"):
        _ensure_unique_name(db, changes["name"], user.id, exclude_id=protocol_id)
    for key, value in changes.items():
        setattr(db_protocol, key, value)
    db.commit()
    db.refresh(db_protocol)
    return db_protocol


def delete_protocol(db: Session, protocol_id: str, user: User):
    db_protocol = get_owned_protocol(db, protocol_id, user)
    db.delete(db_protocol)
    db.commit()
    logger.info("Deleted protocol %s", protocol_id)


# ---------------------------
# Full view
# ---------------------------

def _protocol_task_out(membership: ProtocolTask) -> schemas.ProtocolTaskOut:
    task = membership.task
    return schemas.ProtocolTaskOut(
        protocol_task_id=membership.id,
        task_id=task.id,
        order_index=membership.order_index,
        importance_rating=membership.importance_rating,
        notes=membership.notes,
        title=membership.override_title or task.title,
        time=membership.override_time if membership.override_time is not None else task.time,
        description=membership.override_description or task.description,
        additional_notes=membership.override_additional_notes or task.additional_notes,
        type=task.type,
        rating=task.rating,
        has_title_override=bool(membership.override_title),
        has_time_override=membership.override_time is not None,
        has_description_override=bool(membership.override_description),
        has_notes_override=bool(membership.override_additional_notes),
        sensors=[schemas.SensorOut.model_validate(s) for s in membership.sensors],
        domains=[schemas.DomainOut.model_validate(d) for d in membership.domains],
    )


def get_protocol_tasks(db: Session, protocol_id: str) -> List[schemas.ProtocolTaskOut]:
    get_protocol(db, protocol_id)
    memberships = (
        db.query(ProtocolTask)
        .options(joinedload(ProtocolTask.task))
        .filter(ProtocolTask.protocol_id == protocol_id)
        .order_by(ProtocolTask.order_index)
        .all()
    )
    return [_protocol_task_out(m) for m in memberships]


def get_protocol_sections(db: Session, protocol_id: str) -> List[schemas.ProtocolSectionOut]:
    get_protocol(db, protocol_id)
    memberships = (
        db.query(ProtocolSection)
        .options(joinedload(ProtocolSection.section))
        .filter(ProtocolSection.protocol_id == protocol_id)
        .order_by(ProtocolSection.order_index)
        .all()
    )
    return [
        schemas.ProtocolSectionOut(
            membership_id=m.id,
            order_index=m.order_index,
            section=schemas.SectionOut.model_validate(m.section),
            subsections=get_section_subsections(db, m.section_id),
        )
        for m in memberships
    ]


def get_full_protocol(db: Session, protocol_id: str) -> schemas.ProtocolFull:
    protocol = get_protocol(db, protocol_id)
    return schemas.ProtocolFull(
        **schemas.ProtocolOut.model_validate(protocol).model_dump(),
        tasks=get_protocol_tasks(db, protocol_id),
        sections=get_protocol_sections(db, protocol_id),
    )


# ---------------------------
# Ordered tasks
# ---------------------------

def _tasks_engine(db: Session, protocol_id: str, user: User) -> OrderingEngine:
    get_owned_protocol(db, protocol_id, user)
    return OrderingEngine(db, PROTOCOL_TASKS)


def add_task(db: Session, protocol_id: str, task_id: str, payload, user: User):
    payload = payload or schemas.ProtocolTaskInsert()
    fields = payload.model_dump(include=set(TEMPLATE_FIELDS), exclude_none=True)
    return _tasks_engine(db, protocol_id, user).insert_at_position(
        protocol_id, task_id, payload.position, copy_defaults=payload.copy_defaults, **fields)


def update_task_overrides(db: Session, protocol_id: str, task_id: str,
                          payload: schemas.ProtocolTaskUpdate, user: User) -> schemas.ProtocolTaskOut:
    get_owned_protocol(db, protocol_id, user)
    membership = (
        db.query(ProtocolTask)
        .filter(ProtocolTask.protocol_id == protocol_id, ProtocolTask.task_id == task_id)
        .first()
    )
    if membership is None:
        raise NotFoundError("Task", {"protocol_id": protocol_id, "task_id": task_id},
                            message="Task not found in protocol")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(membership, key, value)
    db.commit()
    db.refresh(membership)
    return _protocol_task_out(membership)


def remove_task(db: Session, protocol_id: str, task_id: str, user: User):
    return _tasks_engine(db, protocol_id, user).remove_membership(protocol_id, task_id)


def move_task(db: Session, protocol_id: str, task_id: str, position: int, user: User):
    return _tasks_engine(db, protocol_id, user).move_position(protocol_id, task_id, position)


def reorder_tasks(db: Session, protocol_id: str, payload: schemas.TaskReorder, user: User):
    assignments = payload.as_assignments()
    if len(assignments) != len(payload.task_orders):
        raise ValidationError("Each task may appear only once in task_orders")
    return _tasks_engine(db, protocol_id, user).bulk_reorder(protocol_id, assignments)


def resequence_tasks(db: Session, protocol_id: str, user: User):
    return _tasks_engine(db, protocol_id, user).resequence(protocol_id)


# ---------------------------
# Ordered sections
# ---------------------------

def _sections_engine(db: Session, protocol_id: str, user: User) -> OrderingEngine:
    get_owned_protocol(db, protocol_id, user)
    return OrderingEngine(db, PROTOCOL_SECTIONS)


def add_section(db: Session, protocol_id: str, section_id: str, payload, user: User):
    payload = payload or schemas.MembershipInsert()
    return _sections_engine(db, protocol_id, user).insert_at_position(protocol_id, section_id, payload.position)


def remove_section(db: Session, protocol_id: str, section_id: str, user: User):
    return _sections_engine(db, protocol_id, user).remove_membership(protocol_id, section_id)


def move_section(db: Session, protocol_id: str, section_id: str, position: int, user: User):
    return _sections_engine(db, protocol_id, user).move_position(protocol_id, section_id, position)


def reorder_sections(db: Session, protocol_id: str, assignments: dict, user: User):
    return _sections_engine(db, protocol_id, user).bulk_reorder(protocol_id, assignments)


def resequence_sections(db: Session, protocol_id: str, user: User):
    return _sections_engine(db, protocol_id, user).resequence(protocol_id)
