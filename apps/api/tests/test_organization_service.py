"""Tests for organization CRUD."""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from app.core.errors import ConstraintViolation, NotFoundError
from app.db.models import Contact, Organization
from app.schemas.crm import ContactCreate, OrganizationCreate, OrganizationUpdate
from app.services import contact_service, organization_service


def _org(db, name="Acme", **kwargs) -> Organization:
    return organization_service.create_organization(db, OrganizationCreate(name=name, **kwargs))


def test_get_organization_loads_parent_and_contacts(db):
    parent = _org(db, name="Holding")
    org = _org(db, name="Acme", parent_organization_id=parent.id)
    contact_service.create_contact(
        db, ContactCreate(first_name="Ada", last_name="Lovelace", organization_id=org.id)
    )
    db.expire_all()

    fetched = organization_service.get_organization(db, org.id)

    assert fetched.parent_organization.name == "Holding"
    assert [c.first_name for c in fetched.contacts] == ["Ada"]


def test_list_organizations_newest_first(db):
    older = _org(db, name="Older")
    newer = _org(db, name="Newer")
    older.created_at = datetime(2023, 5, 1, tzinfo=timezone.utc)
    newer.created_at = datetime(2024, 5, 1, tzinfo=timezone.utc)
    db.commit()

    names = [org.name for org in organization_service.list_organizations(db)]

    assert names == ["Newer", "Older"]


def test_update_organization_partial(db):
    org = _org(db, industry="Retail", website="https://acme.com")

    updated = organization_service.update_organization(
        db, org.id, OrganizationUpdate(industry="Software")
    )

    assert updated.industry == "Software"
    assert updated.website == "https://acme.com"


def test_update_moves_organization_to_another_parent(db):
    first = _org(db, name="First Holding")
    second = _org(db, name="Second Holding")
    org = _org(db, name="Acme", parent_organization_id=first.id)
    assert organization_service.get_organization(db, org.id).parent_organization.name == (
        "First Holding"
    )

    updated = organization_service.update_organization(
        db, org.id, OrganizationUpdate(parent_organization_id=second.id)
    )

    assert updated.parent_organization_id == second.id
    assert updated.parent_organization.name == "Second Holding"


def test_organization_cannot_be_its_own_parent(db):
    org = _org(db)

    with pytest.raises(ConstraintViolation):
        organization_service.update_organization(
            db, org.id, OrganizationUpdate(parent_organization_id=org.id)
        )

    assert organization_service.get_organization(db, org.id).parent_organization_id is None


def test_delete_organization_detaches_contacts_and_children(db):
    parent = _org(db, name="Holding")
    child = _org(db, name="Subsidiary", parent_organization_id=parent.id)
    contact = contact_service.create_contact(
        db, ContactCreate(first_name="Ada", last_name="Lovelace", organization_id=parent.id)
    )

    organization_service.delete_organization(db, parent.id)
    db.expire_all()

    assert db.get(Organization, parent.id) is None
    assert db.get(Organization, child.id).parent_organization_id is None
    assert db.get(Contact, contact.id).organization_id is None


def test_unknown_organization_operations_raise_not_found(db):
    _org(db)
    missing = uuid.uuid4()

    with pytest.raises(NotFoundError, match="Organization"):
        organization_service.get_organization(db, missing)
    with pytest.raises(NotFoundError):
        organization_service.update_organization(db, missing, OrganizationUpdate(name="X"))
    with pytest.raises(NotFoundError):
        organization_service.delete_organization(db, missing)

    assert db.scalar(select(func.count()).select_from(Organization)) == 1


def test_unknown_parent_is_a_constraint_violation(db):
    with pytest.raises(ConstraintViolation):
        _org(db, parent_organization_id=uuid.uuid4())
