from sqlalchemy.orm import Session

from delphi_api.core.errors import NotFoundError
from delphi_api.core.security import ensure_owner
from delphi_api.db.models.domain import Domain
from delphi_api.db.models.user import User
from . import schemas


def get_domains(db: Session, public_only: bool = False):
    query = db.query(Domain)
    if public_only:
        query = query.filter(Domain.is_custom.is_(False))
    return query.order_by(Domain.name).all()


def get_domain(db: Session, domain_id: str) -> Domain:
    domain = db.get(Domain, domain_id)
    if domain is None:
        raise NotFoundError("Domain", {"id": domain_id})
    return domain


def create_domain(db: Session, domain: schemas.DomainCreate, user_id: int) -> Domain:
    data = domain.model_dump()
    data["name"] = data["name"].strip()
    db_domain = Domain(**data, created_by=user_id)
    db.add(db_domain)
    db.commit()
    db.refresh(db_domain)
    return db_domain


def update_domain(db: Session, domain_id: str, domain: schemas.DomainUpdate, user: User) -> Domain:
    db_domain = get_domain(db, domain_id)
    ensure_owner(db_domain, user, "Domain", require_custom=True)
    for key, value in domain.model_dump(exclude_unset=True).items():
        setattr(db_domain, key, value)
    db.commit()
    db.refresh(db_domain)
    return db_domain


def delete_domain(db: Session, domain_id: str, user: User):
    db_domain = get_domain(db, domain_id)
    ensure_owner(db_domain, user, "Domain", require_custom=True)
    db.delete(db_domain)
    db.commit()
