from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delphi_api.api.domains.schemas import DomainOut
from delphi_api.api.sensors.schemas import SensorOut
from delphi_api.core.responses import created, listing, success
from delphi_api.core.security import get_current_user
from delphi_api.db.models.user import User
from delphi_api.db.session import get_db
from . import schemas, services

router = APIRouter()


def _many(tasks):
    return [schemas.TaskOut.model_validate(t) for t in tasks]


@router.get("/")
def read_tasks(
    type: Optional[Literal["task", "break"]] = None,
    user_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    tasks = services.get_tasks(db, current_user, task_type=type, user_only=user_only)
    return listing(_many(tasks), "Tasks retrieved successfully")


@router.get("/search/{term}")
def search_tasks(term: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.search_tasks(db, term)), f"Search results for '{term}' retrieved successfully")


@router.get("/{task_id}")
def read_task(
    task_id: str,
    with_relations: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = services.get_task(db, task_id)
    schema = schemas.TaskWithRelations if with_relations else schemas.TaskOut
    return success(schema.model_validate(task), "Task retrieved successfully")


@router.get("/{task_id}/sensors")
def read_task_sensors(task_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = services.get_task(db, task_id)
    return listing([SensorOut.model_validate(s) for s in task.sensors], "Task sensors retrieved successfully")


@router.get("/{task_id}/domains")
def read_task_domains(task_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = services.get_task(db, task_id)
    return listing([DomainOut.model_validate(d) for d in task.domains], "Task domains retrieved successfully")


@router.post("/", status_code=201)
def create_task(
    task: schemas.TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_task = services.create_task(db, task, current_user.id)
    return created(schemas.TaskOut.model_validate(db_task), "Task created successfully")


@router.put("/{task_id}")
def update_task(
    task_id: str,
    task: schemas.TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_task = services.update_task(db, task_id, task, current_user)
    return success(schemas.TaskOut.model_validate(db_task), "Task updated successfully")


@router.delete("/{task_id}")
def delete_task(task_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    services.delete_task(db, task_id, current_user)
    return success(None, "Task deleted successfully")


@router.post("/{task_id}/sensors/{sensor_id}", status_code=201)
def add_task_sensor(
    task_id: str,
    sensor_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    services.add_task_sensor(db, task_id, sensor_id, current_user)
    return created({"task_id": task_id, "sensor_id": sensor_id}, "Sensor added to task successfully")


@router.delete("/{task_id}/sensors/{sensor_id}")
def remove_task_sensor(
    task_id: str,
    sensor_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    services.remove_task_sensor(db, task_id, sensor_id, current_user)
    return success(None, "Sensor removed from task successfully")


@router.post("/{task_id}/domains/{domain_id}", status_code=201)
def add_task_domain(
    task_id: str,
    domain_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    services.add_task_domain(db, task_id, domain_id, current_user)
    return created({"task_id": task_id, "domain_id": domain_id}, "Domain added to task successfully")


@router.delete("/{task_id}/domains/{domain_id}")
def remove_task_domain(
    task_id: str,
    domain_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    services.remove_task_domain(db, task_id, domain_id, current_user)
    return success(None, "Domain removed from task successfully")
