from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delphi_api.core.responses import created, listing, success
from delphi_api.core.security import get_current_user
from delphi_api.db.models.user import User
from delphi_api.db.session import get_db
from . import schemas, services

router = APIRouter()


def _many(db, protocols, full=False):
    if full:
        return [services.get_full_protocol(db, p.id) for p in protocols]
    return [schemas.ProtocolOut.model_validate(p) for p in protocols]


@router.get("/")
def read_protocols(
    templates_only: bool = False,
    full: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    protocols = services.get_protocols(db, current_user, templates_only=templates_only)
    return listing(_many(db, protocols, full), "Protocols retrieved successfully")


@router.get("/my")
def read_my_protocols(
    full: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    protocols = services.get_user_protocols(db, current_user)
    return listing(_many(db, protocols, full), "User protocols retrieved successfully")


@router.get("/search/{term}")
def search_protocols(term: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(db, services.search_protocols(db, term)),
                   f"Search results for '{term}' retrieved successfully")


@router.get("/{protocol_id}")
def read_protocol(protocol_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return success(schemas.ProtocolOut.model_validate(services.get_protocol(db, protocol_id)),
                   "Protocol retrieved successfully")


@router.get("/{protocol_id}/full")
def read_full_protocol(
    protocol_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return success(services.get_full_protocol(db, protocol_id), "Full protocol retrieved successfully")


@router.post("/", status_code=201)
def create_protocol(
    protocol: schemas.ProtocolCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_protocol = services.create_protocol(db, protocol, current_user)
    return created(schemas.ProtocolOut.model_validate(db_protocol), "Protocol created successfully")


@router.put("/{protocol_id}")
def update_protocol(
    protocol_id: str,
    protocol: schemas.ProtocolUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_protocol = services.update_protocol(db, protocol_id, protocol, current_user)
    return success(schemas.ProtocolOut.model_validate(db_protocol), "Protocol updated successfully")


@router.delete("/{protocol_id}")
def delete_protocol(protocol_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    services.delete_protocol(db, protocol_id, current_user)
    return success(None, "Protocol deleted successfully")


# ---------------------------
# Ordered tasks
# ---------------------------

@router.get("/{protocol_id}/tasks")
def read_protocol_tasks(
    protocol_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return listing(services.get_protocol_tasks(db, protocol_id), "Protocol tasks retrieved successfully")


@router.put("/{protocol_id}/tasks/reorder")
def reorder_tasks(
    protocol_id: str,
    payload: schemas.TaskReorder,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.reorder_tasks(db, protocol_id, payload, current_user)
    return success(result, "Task orders updated successfully")


@router.post("/{protocol_id}/tasks/resequence")
def resequence_tasks(
    protocol_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.resequence_tasks(db, protocol_id, current_user)
    return success(result, "Protocol tasks resequenced successfully")


@router.post("/{protocol_id}/tasks/{task_id}", status_code=201)
def add_task(
    protocol_id: str,
    task_id: str,
    payload: Optional[schemas.ProtocolTaskInsert] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.add_task(db, protocol_id, task_id, payload, current_user)
    return created(result, "Task added to protocol successfully")


@router.put("/{protocol_id}/tasks/{task_id}")
def update_task_overrides(
    protocol_id: str,
    task_id: str,
    payload: schemas.ProtocolTaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.update_task_overrides(db, protocol_id, task_id, payload, current_user)
    return success(result, "Protocol task updated successfully")


@router.put("/{protocol_id}/tasks/{task_id}/order")
def move_task(
    protocol_id: str,
    task_id: str,
    payload: schemas.MembershipMove,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.move_task(db, protocol_id, task_id, payload.position, current_user)
    return success(result, "Task order updated successfully")


@router.delete("/{protocol_id}/tasks/{task_id}")
def remove_task(
    protocol_id: str,
    task_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.remove_task(db, protocol_id, task_id, current_user)
    return success(result, "Task removed from protocol successfully")


# ---------------------------
# Ordered sections
# ---------------------------

@router.get("/{protocol_id}/sections")
def read_protocol_sections(
    protocol_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return listing(services.get_protocol_sections(db, protocol_id), "Protocol sections retrieved successfully")


@router.put("/{protocol_id}/sections/reorder")
def reorder_sections(
    protocol_id: str,
    payload: schemas.BulkReorder,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.reorder_sections(db, protocol_id, payload.assignments, current_user)
    return success(result, "Section orders updated successfully")


@router.post("/{protocol_id}/sections/resequence")
def resequence_sections(
    protocol_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.resequence_sections(db, protocol_id, current_user)
    return success(result, "Protocol sections resequenced successfully")


@router.post("/{protocol_id}/sections/{section_id}", status_code=201)
def add_section(
    protocol_id: str,
    section_id: str,
    payload: Optional[schemas.MembershipInsert] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.add_section(db, protocol_id, section_id, payload, current_user)
    return created(result, "Section added to protocol successfully")


@router.put("/{protocol_id}/sections/{section_id}/order")
def move_section(
    protocol_id: str,
    section_id: str,
    payload: schemas.MembershipMove,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.move_section(db, protocol_id, section_id, payload.position, current_user)
    return success(result, "Section order updated successfully")


@router.delete("/{protocol_id}/sections/{section_id}")
def remove_section(
    protocol_id: str,
    section_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.remove_section(db, protocol_id, section_id, current_user)
    return success(result, "Section removed from protocol successfully")
