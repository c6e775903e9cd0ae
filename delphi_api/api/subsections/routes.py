from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delphi_api.api.sensors.schemas import SensorOut
from delphi_api.core.responses import created, listing, success
from delphi_api.core.security import get_current_user
from delphi_api.db.models.user import User
from delphi_api.db.session import get_db
from . import schemas, services

router = APIRouter()


def _many(subsections):
    return [schemas.SubsectionOut.model_validate(s) for s in subsections]


@router.get("/")
def read_subsections(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_subsections(db)), "Subsections retrieved successfully")


@router.get("/public")
def read_public_subsections(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_subsections(db, public=True)), "Public subsections retrieved successfully")


@router.get("/enabled")
def read_enabled_subsections(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_subsections(db, enabled=True)), "Enabled subsections retrieved successfully")


@router.get("/type/{subsection_type}")
def read_subsections_by_type(
    subsection_type: Literal["subsection", "break"],
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    subsections = services.get_subsections(db, subsection_type=subsection_type)
    return listing(_many(subsections), f"Subsections of type '{subsection_type}' retrieved successfully")


@router.get("/my")
def read_my_subsections(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    subsections = services.get_subsections(db, user_id=current_user.id)
    return listing(_many(subsections), "Your subsections retrieved successfully")


@router.get("/search/{term}")
def search_subsections(term: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.search_subsections(db, term)),
                   f"Search results for '{term}' retrieved successfully")


@router.get("/{subsection_id}")
def read_subsection(
    subsection_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return success(schemas.SubsectionOut.model_validate(services.get_subsection(db, subsection_id)),
                   "Subsection retrieved successfully")


@router.get("/{subsection_id}/with-sensors")
def read_subsection_with_sensors(
    subsection_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return success(schemas.SubsectionWithSensors.model_validate(services.get_subsection(db, subsection_id)),
                   "Subsection retrieved successfully")


@router.get("/{subsection_id}/sensors")
def read_subsection_sensors(
    subsection_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    subsection = services.get_subsection(db, subsection_id)
    return listing([SensorOut.model_validate(s) for s in subsection.sensors],
                   "Subsection sensors retrieved successfully")


@router.post("/", status_code=201)
def create_subsection(
    subsection: schemas.SubsectionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_subsection = services.create_subsection(db, subsection, current_user.id)
    return created(schemas.SubsectionOut.model_validate(db_subsection), "Subsection created successfully")


@router.put("/{subsection_id}")
def update_subsection(
    subsection_id: str,
    subsection: schemas.SubsectionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_subsection = services.update_subsection(db, subsection_id, subsection, current_user)
    return success(schemas.SubsectionOut.model_validate(db_subsection), "Subsection updated successfully")


@router.delete("/{subsection_id}")
def delete_subsection(
    subsection_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    services.delete_subsection(db, subsection_id, current_user)
    return success(None, "Subsection deleted successfully")


@router.post("/{subsection_id}/sensors/{sensor_id}", status_code=201)
def add_subsection_sensor(
    subsection_id: str,
    sensor_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    services.add_subsection_sensor(db, subsection_id, sensor_id, current_user)
    return created({"subsection_id": subsection_id, "sensor_id": sensor_id},
                   "Sensor added to subsection successfully")


@router.delete("/{subsection_id}/sensors/{sensor_id}")
def remove_subsection_sensor(
    subsection_id: str,
    sensor_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    services.remove_subsection_sensor(db, subsection_id, sensor_id, current_user)
    return success(None, "Sensor removed from subsection successfully")


@router.delete("/{subsection_id}/sensors")
def clear_subsection_sensors(
    subsection_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    removed = services.clear_subsection_sensors(db, subsection_id, current_user)
    return success({"removed": removed}, "All sensors removed from subsection successfully")
