"""Organization service - CRUD over the organization tree."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.errors import ConstraintViolation, NotFoundError
from app.db.models import Organization
from app.schemas.crm import OrganizationCreate, OrganizationUpdate


def create_organization(db: Session, data: OrganizationCreate) -> Organization:
    """
    Create an organization.

    Raises:
        ConstraintViolation: parent organization does not exist
    """
    org = Organization(**data.model_dump())
    db.add(org)
    _commit(db)
    return org


def list_organizations(db: Session) -> list[Organization]:
    """List organizations, newest first, with their parent loaded."""
    stmt = (
        select(Organization)
        .options(joinedload(Organization.parent_organization))
        .order_by(Organization.created_at.desc())
    )
    return list(db.scalars(stmt).unique())


def get_organization(db: Session, organization_id: UUID) -> Organization:
    """
    Get an organization with its parent and contacts.

    Raises:
        NotFoundError: no organization with this id
    """
    stmt = (
        select(Organization)
        .options(
            joinedload(Organization.parent_organization),
            selectinload(Organization.contacts),
        )
        .where(Organization.id == organization_id)
    )
    org = db.scalars(stmt).unique().first()
    if org is None:
        raise NotFoundError("Organization", organization_id)
    return org


def update_organization(
    db: Session, organization_id: UUID, data: OrganizationUpdate
) -> Organization:
    """Apply the fields set on ``data``; unset fields are left untouched."""
    org = get_organization(db, organization_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("parent_organization_id") == org.id:
        raise ConstraintViolation("An organization cannot be its own parent")
    for field, value in changes.items():
        setattr(org, field, value)
    _commit(db)
    db.expire(org)
    return get_organization(db, organization_id)


def delete_organization(db: Session, organization_id: UUID) -> None:
    """Delete an organization. Its contacts and child organizations are detached."""
    org = get_organization(db, organization_id)
    db.delete(org)
    _commit(db)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConstraintViolation("Organization violates a database constraint") from exc
