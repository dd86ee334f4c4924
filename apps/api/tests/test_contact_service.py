"""Tests for contact CRUD."""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from app.core.errors import ConstraintViolation, NotFoundError
from app.db.enums import ActivityType
from app.db.models import Activity, Contact
from app.schemas.crm import (
    ActivityCreate,
    ContactCreate,
    ContactRead,
    ContactUpdate,
    OrganizationCreate,
)
from app.services import activity_service, contact_service, organization_service


def _contact(db, first="Ada", last="Lovelace", **kwargs) -> Contact:
    return contact_service.create_contact(
        db, ContactCreate(first_name=first, last_name=last, **kwargs)
    )


def _count(db) -> int:
    return db.scalar(select(func.count()).select_from(Contact))


def test_create_and_get_contact_with_organization(db):
    org = organization_service.create_organization(db, OrganizationCreate(name="Acme"))
    contact = _contact(db, email="ada@acme.com", organization_id=org.id)

    fetched = contact_service.get_contact(db, contact.id)

    assert fetched.id == contact.id
    assert fetched.email == "ada@acme.com"
    assert fetched.organization.name == "Acme"
    assert fetched.full_name == "Ada Lovelace"


def test_list_contacts_newest_first(db):
    older = _contact(db, first="Older")
    newer = _contact(db, first="Newer")
    older.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    newer.created_at = datetime(2024, 2, 1, tzinfo=timezone.utc)
    db.commit()

    contacts = contact_service.list_contacts(db)

    assert [c.id for c in contacts] == [newer.id, older.id]


def test_update_merges_only_provided_fields(db):
    contact = _contact(db, email="ada@acme.com", job_title="Engineer")

    updated = contact_service.update_contact(db, contact.id, ContactUpdate(job_title="CTO"))

    assert updated.job_title == "CTO"
    assert updated.email == "ada@acme.com"
    assert updated.first_name == "Ada"


def test_update_can_clear_a_field_explicitly(db):
    contact = _contact(db, phone="+15125550100")

    updated = contact_service.update_contact(db, contact.id, ContactUpdate(phone=None))

    assert updated.phone is None


def test_update_moves_contact_to_another_organization(db):
    first = organization_service.create_organization(db, OrganizationCreate(name="First"))
    second = organization_service.create_organization(db, OrganizationCreate(name="Second"))
    contact = _contact(db, organization_id=first.id)
    assert contact_service.get_contact(db, contact.id).organization.name == "First"

    updated = contact_service.update_contact(
        db, contact.id, ContactUpdate(organization_id=second.id)
    )

    assert updated.organization_id == second.id
    assert updated.organization.name == "Second"
    assert ContactRead.model_validate(updated).organization.name == "Second"


def test_update_can_detach_contact_from_organization(db):
    org = organization_service.create_organization(db, OrganizationCreate(name="Acme"))
    contact = _contact(db, organization_id=org.id)
    contact_service.get_contact(db, contact.id)

    updated = contact_service.update_contact(db, contact.id, ContactUpdate(organization_id=None))

    assert updated.organization_id is None
    assert updated.organization is None


def test_get_unknown_contact_raises_not_found(db):
    missing = uuid.uuid4()

    with pytest.raises(NotFoundError) as exc_info:
        contact_service.get_contact(db, missing)

    assert exc_info.value.entity == "Contact"
    assert exc_info.value.entity_id == missing
    assert exc_info.value.status_code == 404


def test_update_and_delete_unknown_contact_do_not_mutate(db):
    _contact(db)

    with pytest.raises(NotFoundError):
        contact_service.update_contact(db, uuid.uuid4(), ContactUpdate(first_name="X"))
    with pytest.raises(NotFoundError):
        contact_service.delete_contact(db, uuid.uuid4())

    assert _count(db) == 1
    assert contact_service.list_contacts(db)[0].first_name == "Ada"


def test_delete_contact_removes_its_activities(db):
    contact = _contact(db)
    activity_service.create_activity(
        db,
        ActivityCreate(
            type=ActivityType.CALL,
            subject="Intro call",
            activity_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
            contact_id=contact.id,
        ),
    )

    contact_service.delete_contact(db, contact.id)

    assert _count(db) == 0
    assert db.scalar(select(func.count()).select_from(Activity)) == 0


def test_unknown_organization_is_a_constraint_violation(db):
    with pytest.raises(ConstraintViolation):
        _contact(db, organization_id=uuid.uuid4())

    assert _count(db) == 0
