"""Contact service - CRUD for CRM contacts."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import ConstraintViolation, NotFoundError
from app.db.models import Contact
from app.schemas.crm import ContactCreate, ContactUpdate


def create_contact(db: Session, data: ContactCreate) -> Contact:
    contact = Contact(**data.model_dump())
    db.add(contact)
    _commit(db)
    return contact


def list_contacts(db: Session) -> list[Contact]:
    """List contacts, newest first, with their organization loaded."""
    stmt = (
        select(Contact)
        .options(joinedload(Contact.organization))
        .order_by(Contact.created_at.desc())
    )
    return list(db.scalars(stmt).unique())


def get_contact(db: Session, contact_id: UUID) -> Contact:
    """
    Get a contact with its organization.

    Raises:
        NotFoundError: no contact with this id
    """
    stmt = (
        select(Contact)
        .options(joinedload(Contact.organization))
        .where(Contact.id == contact_id)
    )
    contact = db.scalars(stmt).unique().first()
    if contact is None:
        raise NotFoundError("Contact", contact_id)
    return contact


def update_contact(db: Session, contact_id: UUID, data: ContactUpdate) -> Contact:
    contact = get_contact(db, contact_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(contact, field, value)
    _commit(db)
    # Reload so the returned contact carries its current organization.
    db.expire(contact)
    return get_contact(db, contact_id)


def delete_contact(db: Session, contact_id: UUID) -> None:
    """Delete a contact and its activities."""
    contact = get_contact(db, contact_id)
    db.delete(contact)
    _commit(db)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConstraintViolation("Contact violates a database constraint") from exc
