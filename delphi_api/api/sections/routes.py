from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delphi_api.core.responses import created, listing, success
from delphi_api.core.security import get_current_user
from delphi_api.db.models.user import User
from delphi_api.db.session import get_db
from . import schemas, services

router = APIRouter()


def _many(sections):
    return [schemas.SectionOut.model_validate(s) for s in sections]


@router.get("/")
def read_sections(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_sections(db)), "Sections retrieved successfully")


@router.get("/public")
def read_public_sections(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_sections(db, public=True)), "Public sections retrieved successfully")


@router.get("/enabled")
def read_enabled_sections(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_sections(db, enabled=True)), "Enabled sections retrieved successfully")


@router.get("/my")
def read_my_sections(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.get_sections(db, user_id=current_user.id)), "Your sections retrieved successfully")


@router.get("/search/{term}")
def search_sections(term: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return listing(_many(services.search_sections(db, term)), f"Search results for '{term}' retrieved successfully")


@router.get("/{section_id}")
def read_section(section_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return success(schemas.SectionOut.model_validate(services.get_section(db, section_id)),
                   "Section retrieved successfully")


@router.post("/", status_code=201)
def create_section(
    section: schemas.SectionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_section = services.create_section(db, section, current_user.id)
    return created(schemas.SectionOut.model_validate(db_section), "Section created successfully")


@router.put("/{section_id}")
def update_section(
    section_id: str,
    section: schemas.SectionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_section = services.update_section(db, section_id, section, current_user)
    return success(schemas.SectionOut.model_validate(db_section), "Section updated successfully")


@router.delete("/{section_id}")
def delete_section(section_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    services.delete_section(db, section_id, current_user)
    return success(None, "Section deleted successfully")


# ---------------------------
# Ordered subsections
# ---------------------------

@router.get("/{section_id}/subsections")
def read_section_subsections(
    section_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    items = services.get_section_subsections(db, section_id)
    return listing(items, "Section subsections retrieved successfully")


@router.put("/{section_id}/subsections/reorder")
def reorder_subsections(
    section_id: str,
    payload: schemas.BulkReorder,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.reorder_subsections(db, section_id, payload.assignments, current_user)
    return success(result, "Subsections reordered successfully")


@router.post("/{section_id}/subsections/resequence")
def resequence_subsections(
    section_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.resequence_subsections(db, section_id, current_user)
    return success(result, "Subsections resequenced successfully")


@router.post("/{section_id}/subsections/{subsection_id}", status_code=201)
def add_subsection(
    section_id: str,
    subsection_id: str,
    payload: Optional[schemas.MembershipInsert] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.add_subsection(db, section_id, subsection_id, payload, current_user)
    return created(result, "Subsection added to section successfully")


@router.put("/{section_id}/subsections/{subsection_id}/order")
def move_subsection(
    section_id: str,
    subsection_id: str,
    payload: schemas.MembershipMove,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.move_subsection(db, section_id, subsection_id, payload.position, current_user)
    return success(result, "Subsection order updated successfully")


@router.delete("/{section_id}/subsections/{subsection_id}")
def remove_subsection(
    section_id: str,
    subsection_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = services.remove_subsection(db, section_id, subsection_id, current_user)
    return success(result, "Subsection removed from section successfully")


@router.delete("/{section_id}/subsections")
def clear_subsections(
    section_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    removed = services.clear_subsections(db, section_id, current_user)
    return success({"removed": removed}, "All subsections removed from section successfully")
