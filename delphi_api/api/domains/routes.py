from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delphi_api.core.responses import created, listing, success
from delphi_api.core.security import get_current_user
from delphi_api.db.models.user import User
from delphi_api.db.session import get_db
from . import schemas, services

router = APIRouter()


@router.get("/")
def read_domains(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    domains = [schemas.DomainOut.model_validate(d) for d in services.get_domains(db)]
    return listing(domains, "Domains retrieved successfully")


@router.get("/public")
def read_public_domains(db: Session = Depends(get_db)):
    domains = [schemas.DomainOut.model_validate(d) for d in services.get_domains(db, public_only=True)]
    return listing(domains, "Public domains retrieved successfully")


@router.get("/{domain_id}")
def read_domain(domain_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return success(schemas.DomainOut.model_validate(services.get_domain(db, domain_id)),
                   "Domain retrieved successfully")


@router.post("/", status_code=201)
def create_domain(
    domain: schemas.DomainCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_domain = services.create_domain(db, domain, current_user.id)
    return created(schemas.DomainOut.model_validate(db_domain), "Domain created successfully")


@router.put("/{domain_id}")
def update_domain(
    domain_id: str,
    domain: schemas.DomainUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_domain = services.update_domain(db, domain_id, domain, current_user)
    return success(schemas.DomainOut.model_validate(db_domain), "Domain updated successfully")


@router.delete("/{domain_id}")
def delete_domain(domain_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    services.delete_domain(db, domain_id, current_user)
    return success(None, "Domain deleted successfully")
