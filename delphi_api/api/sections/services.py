import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from delphi_api.api.sensors.schemas import SensorOut
from delphi_api.api.sensors.services import MIN_SEARCH_LENGTH
from delphi_api.api.subsections.schemas import SubsectionOut
from delphi_api.core.errors import NotFoundError, ValidationError
from delphi_api.core.ordering import SECTION_SUBSECTIONS, OrderingEngine, delete_child
from delphi_api.core.security import ensure_owner
from delphi_api.db.models.protocol import Section, SectionSubsection
from delphi_api.db.models.user import User
from . import schemas

logger = logging.getLogger(__name__)


def get_sections(db: Session, public=None, enabled=None, user_id=None):
    query = db.query(Section)
    if public is not None:
        query = query.filter(Section.is_public.is_(public))
    if enabled is not None:
        query = query.filter(Section.enabled.is_(enabled))
    if user_id is not None:
        query = query.filter(Section.created_by == user_id)
    return query.order_by(Section.title).all()


def search_sections(db: Session, term: str):
    term = term.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search term must be at least {MIN_SEARCH_LENGTH} characters long")
    pattern = f"%{term}%"
    return (
        db.query(Section)
        .filter(or_(Section.title.ilike(pattern), Section.description.ilike(pattern)))
        .order_by(Section.title)
        .all()
    )


def get_section(db: Session, section_id: str) -> Section:
    section = db.get(Section, section_id)
    if section is None:
        raise NotFoundError("Section", {"id": section_id})
    return section


def create_section(db: Session, section: schemas.SectionCreate, user_id: int) -> Section:
    db_section = Section(**section.model_dump(), created_by=user_id)
    db.add(db_section)
    db.commit()
    db.refresh(db_section)
    return db_section


def update_section(db: Session, section_id: str, section: schemas.SectionUpdate, user: User) -> Section:
    db_section = get_section(db, section_id)
    ensure_owner(db_section, user, "Section")
    for key, value in section.model_dump(exclude_unset=True).items():
        setattr(db_section, key, value)
    db.commit()
    db.refresh(db_section)
    return db_section


def delete_section(db: Session, section_id: str, user: User):
    db_section = get_section(db, section_id)
    ensure_owner(db_section, user, "Section")
    affected = delete_child(db, db_section)
    logger.info("Deleted section %s (resequenced protocols: %s)", section_id, affected.get("protocol_sections", []))


# ---------------------------
# Ordered subsections
# ---------------------------

def _engine(db: Session, section_id: str, user: User) -> OrderingEngine:
    ensure_owner(get_section(db, section_id), user, "Section")
    return OrderingEngine(db, SECTION_SUBSECTIONS)


def get_section_subsections(db: Session, section_id: str):
    get_section(db, section_id)
    memberships = (
        db.query(SectionSubsection)
        .options(joinedload(SectionSubsection.subsection))
        .filter(SectionSubsection.section_id == section_id)
        .order_by(SectionSubsection.order_index)
        .all()
    )
    return [
        schemas.SectionSubsectionOut(
            membership_id=m.id,
            order_index=m.order_index,
            subsection=SubsectionOut.model_validate(m.subsection),
            sensors=[SensorOut.model_validate(s) for s in m.sensors],
        )
        for m in memberships
    ]


def add_subsection(db: Session, section_id: str, subsection_id: str, payload, user: User):
    payload = payload or schemas.MembershipInsert()
    engine = _engine(db, section_id, user)
    return engine.insert_at_position(section_id, subsection_id, payload.position,
                                     copy_defaults=payload.copy_defaults)


def remove_subsection(db: Session, section_id: str, subsection_id: str, user: User):
    return _engine(db, section_id, user).remove_membership(section_id, subsection_id)


def move_subsection(db: Session, section_id: str, subsection_id: str, position: int, user: User):
    return _engine(db, section_id, user).move_position(section_id, subsection_id, position)


def reorder_subsections(db: Session, section_id: str, assignments: dict, user: User):
    return _engine(db, section_id, user).bulk_reorder(section_id, assignments)


def resequence_subsections(db: Session, section_id: str, user: User):
    return _engine(db, section_id, user).resequence(section_id)


def clear_subsections(db: Session, section_id: str, user: User) -> int:
    ensure_owner(get_section(db, section_id), user, "Section")
    removed = (
        db.query(SectionSubsection)
        .filter(SectionSubsection.section_id == section_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed
