from sqlalchemy import or_
from sqlalchemy.orm import Session

from delphi_api.core.errors import NotFoundError, ValidationError
from delphi_api.core.security import ensure_owner
from delphi_api.db.models.sensor import Sensor
from delphi_api.db.models.user import User
from . import schemas

MIN_SEARCH_LENGTH = 2


def _ordered(query):
    return query.order_by(Sensor.category, Sensor.name)


def get_sensors(db: Session):
    return _ordered(db.query(Sensor)).all()


def get_public_sensors(db: Session):
    return _ordered(db.query(Sensor).filter(Sensor.is_custom.is_(False))).all()


def get_sensors_by_category(db: Session, category: str):
    if not category.strip():
        raise ValidationError("Category parameter is required")
    return _ordered(db.query(Sensor).filter(Sensor.category == category.strip())).all()


def get_custom_sensors(db: Session, user_id: int):
    return _ordered(db.query(Sensor).filter(Sensor.is_custom.is_(True), Sensor.created_by == user_id)).all()


def search_sensors(db: Session, term: str):
    term = term.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search term must be at least {MIN_SEARCH_LENGTH} characters long")
    pattern = f"%{term}%"
    return _ordered(db.query(Sensor).filter(or_(Sensor.name.ilike(pattern), Sensor.category.ilike(pattern)))).all()


def get_sensor(db: Session, sensor_id: str) -> Sensor:
    sensor = db.get(Sensor, sensor_id)
    if sensor is None:
        raise NotFoundError("Sensor", {"id": sensor_id})
    return sensor


def create_sensor(db: Session, sensor: schemas.SensorCreate, user_id: int) -> Sensor:
    db_sensor = Sensor(**sensor.model_dump(), created_by=user_id)
    db.add(db_sensor)
    db.commit()
    db.refresh(db_sensor)
    return db_sensor


def update_sensor(db: Session, sensor_id: str, sensor: schemas.SensorUpdate, user: User) -> Sensor:
    db_sensor = get_sensor(db, sensor_id)
    ensure_owner(db_sensor, user, "Sensor", require_custom=True)
    for key, value in sensor.model_dump(exclude_unset=True).items():
        setattr(db_sensor, key, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(db_sensor)
    return db_sensor


def delete_sensor(db: Session, sensor_id: str, user: User):
    db_sensor = get_sensor(db, sensor_id)
    ensure_owner(db_sensor, user, "Sensor", require_custom=True)
    db.delete(db_sensor)
    db.commit()
