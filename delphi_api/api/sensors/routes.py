from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delphi_api.core.responses import created, listing, success
from delphi_api.core.security import get_current_user
from delphi_api.db.models.user import User
from delphi_api.db.session import get_db
from . import schemas, services

router = APIRouter()


def _many(sensors):
    return [schemas.SensorOut.model_validate(s) for s in sensors]


@router.get("/")
def read_sensors(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_sensors(db)), "Sensors retrieved successfully")


@router.get("/public")
def read_public_sensors(db: Session = Depends(get_db)):
    return listing(_many(services.get_public_sensors(db)), "Public sensors retrieved successfully")


@router.get("/custom")
def read_custom_sensors(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_custom_sensors(db, current_user.id)), "Custom sensors retrieved successfully")


@router.get("/category/{category}")
def read_sensors_by_category(
    category: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    sensors = services.get_sensors_by_category(db, category)
    return listing(_many(sensors), f"Sensors in category '{category}' retrieved successfully")


@router.get("/search/{term}")
def search_sensors(term: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.search_sensors(db, term)), f"Search results for '{term}' retrieved successfully")


@router.get("/{sensor_id}")
def read_sensor(sensor_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return success(schemas.SensorOut.model_validate(services.get_sensor(db, sensor_id)),
                   "Sensor retrieved successfully")


@router.post("/", status_code=201)
def create_sensor(
    sensor: schemas.SensorCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_sensor = services.create_sensor(db, sensor, current_user.id)
    return created(schemas.SensorOut.model_validate(db_sensor), "Sensor created successfully")


@router.put("/{sensor_id}")
def update_sensor(
    sensor_id: str,
    sensor: schemas.SensorUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_sensor = services.update_sensor(db, sensor_id, sensor, current_user)
    return success(schemas.SensorOut.model_validate(db_sensor), "Sensor updated successfully")


@router.delete("/{sensor_id}")
def delete_sensor(sensor_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    services.delete_sensor(db, sensor_id, current_user)
    return success(None, "Sensor deleted successfully")
