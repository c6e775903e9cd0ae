import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from delphi_api.api.sensors.services import MIN_SEARCH_LENGTH, get_sensor
from delphi_api.core.errors import ConflictError, NotFoundError, ValidationError
from delphi_api.core.ordering import delete_child
from delphi_api.core.security import ensure_owner
from delphi_api.db.models.protocol import Subsection, SubsectionSensor
from delphi_api.db.models.user import User
from . import schemas

logger = logging.getLogger(__name__)


def _ordered(query):
    return query.order_by(Subsection.title).all()


def get_subsections(db: Session, public=None, enabled=None, subsection_type=None, user_id=None):
    query = db.query(Subsection)
    if public is not None:
        query = query.filter(Subsection.is_public.is_(public))
    if enabled is not None:
        query = query.filter(Subsection.enabled.is_(enabled))
    if subsection_type is not None:
        query = query.filter(Subsection.type == subsection_type)
    if user_id is not None:
        query = query.filter(Subsection.created_by == user_id)
    return _ordered(query)


def search_subsections(db: Session, term: str):
    term = term.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search term must be at least {MIN_SEARCH_LENGTH} characters long")
    pattern = f"%{term}%"
    return _ordered(db.query(Subsection).filter(
        or_(Subsection.title.ilike(pattern), Subsection.description.ilike(pattern))))


def get_subsection(db: Session, subsection_id: str) -> Subsection:
    subsection = db.get(Subsection, subsection_id)
    if subsection is None:
        raise NotFoundError("Subsection", {"id": subsection_id})
    return subsection


def create_subsection(db: Session, subsection: schemas.SubsectionCreate, user_id: int) -> Subsection:
    db_subsection = Subsection(**subsection.model_dump(), created_by=user_id)
    db.add(db_subsection)
    db.commit()
    db.refresh(db_subsection)
    return db_subsection


def update_subsection(db: Session, subsection_id: str, subsection: schemas.SubsectionUpdate,
                      user: User) -> Subsection:
    db_subsection = get_subsection(db, subsection_id)
    ensure_owner(db_subsection, user, "Subsection")
    for key, value in subsection.model_dump(exclude_unset=True).items():
        setattr(db_subsection, key, value)
    db.commit()
    db.refresh(db_subsection)
    return db_subsection


def delete_subsection(db: Session, subsection_id: str, user: User):
    db_subsection = get_subsection(db, subsection_id)
    ensure_owner(db_subsection, user, "Subsection")
    affected = delete_child(db, db_subsection)
    logger.info("Deleted subsection %s (resequenced sections: %s)",
                subsection_id, affected.get("section_subsections", []))


def add_subsection_sensor(db: Session, subsection_id: str, sensor_id: str, user: User):
    ensure_owner(get_subsection(db, subsection_id), user, "Subsection")
    get_sensor(db, sensor_id)
    if db.get(SubsectionSensor, (subsection_id, sensor_id)) is not None:
        raise ConflictError("Sensor is already associated with this subsection")
    db.add(SubsectionSensor(subsection_id=subsection_id, sensor_id=sensor_id))
    db.commit()


def remove_subsection_sensor(db: Session, subsection_id: str, sensor_id: str, user: User):
    ensure_owner(get_subsection(db, subsection_id), user, "Subsection")
    link = db.get(SubsectionSensor, (subsection_id, sensor_id))
    if link is None:
        raise NotFoundError("Sensor", message="Sensor is not associated with this subsection")
    db.delete(link)
    db.commit()


def clear_subsection_sensors(db: Session, subsection_id: str, user: User) -> int:
    ensure_owner(get_subsection(db, subsection_id), user, "Subsection")
    removed = (
        db.query(SubsectionSensor)
        .filter(SubsectionSensor.subsection_id == subsection_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed
