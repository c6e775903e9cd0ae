import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from delphi_api.api.domains.services import get_domain
from delphi_api.api.sensors.services import MIN_SEARCH_LENGTH, get_sensor
from delphi_api.core.errors import ConflictError, NotFoundError, ValidationError
from delphi_api.core.ordering import delete_child
from delphi_api.core.security import ensure_owner
from delphi_api.db.models import Task, TaskDomain, TaskSensor
from delphi_api.db.models.user import User
from . import schemas

logger = logging.getLogger(__name__)


def get_tasks(db: Session, user: User, task_type: str = None, user_only: bool = False):
    query = db.query(Task)
    if user_only:
        query = query.filter(Task.created_by == user.id)
    else:
        query = query.filter(Task.enabled.is_(True),
                             or_(Task.is_custom.is_(False), Task.created_by == user.id))
    if task_type:
        query = query.filter(Task.type == task_type)
    return query.order_by(Task.title).all()


def search_tasks(db: Session, term: str):
    term = term.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search term must be at least {MIN_SEARCH_LENGTH} characters long")
    pattern = f"%{term}%"
    return (
        db.query(Task)
        .filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        .order_by(Task.title)
        .all()
    )


def get_task(db: Session, task_id: str) -> Task:
    task = db.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task", {"id": task_id})
    return task


def create_task(db: Session, task: schemas.TaskCreate, user_id: int) -> Task:
    db_task = Task(**task.model_dump(), is_custom=True, created_by=user_id)
    db.add(db_task)
    db.commit()
    db.refresh(db_task)
    return db_task


def update_task(db: Session, task_id: str, task: schemas.TaskUpdate, user: User) -> Task:
    db_task = get_task(db, task_id)
    ensure_owner(db_task, user, "Task", require_custom=True)
    for key, value in task.model_dump(exclude_unset=True).items():
        setattr(db_task, key, value)
    db.commit()
    db.refresh(db_task)
    return db_task


def delete_task(db: Session, task_id: str, user: User):
    db_task = get_task(db, task_id)
    ensure_owner(db_task, user, "Task", require_custom=True)
    affected = delete_child(db, db_task)
    logger.info("Deleted task %s (resequenced protocols: %s)", task_id, affected.get("protocol_tasks", []))


# ---------------------------
# Default sensors / domains
# ---------------------------

def _add_default(db: Session, link, label: str):
    if db.get(type(link), (link.task_id, getattr(link, f"{label.lower()}_id"))) is not None:
        raise ConflictError(f"{label} is already associated with this task")
    db.add(link)
    db.commit()


def _remove_default(db: Session, model, key, label: str):
    link = db.get(model, key)
    if link is None:
        raise NotFoundError(label, message=f"{label} is not associated with this task")
    db.delete(link)
    db.commit()


def add_task_sensor(db: Session, task_id: str, sensor_id: str, user: User):
    ensure_owner(get_task(db, task_id), user, "Task", require_custom=True)
    get_sensor(db, sensor_id)
    _add_default(db, TaskSensor(task_id=task_id, sensor_id=sensor_id), "Sensor")


def remove_task_sensor(db: Session, task_id: str, sensor_id: str, user: User):
    ensure_owner(get_task(db, task_id), user, "Task", require_custom=True)
    _remove_default(db, TaskSensor, (task_id, sensor_id), "Sensor")


def add_task_domain(db: Session, task_id: str, domain_id: str, user: User):
    ensure_owner(get_task(db, task_id), user, "Task", require_custom=True)
    get_domain(db, domain_id)
    _add_default(db, TaskDomain(task_id=task_id, domain_id=domain_id), "Domain")


def remove_task_domain(db: Session, task_id: str, domain_id: str, user: User):
    ensure_owner(get_task(db, task_id), user, "Task", require_custom=True)
    _remove_default(db, TaskDomain, (task_id, domain_id), "Domain")
