"""Tests for the demo data script."""

import random

from app.services import activity_service
from scripts import seed_mock_data


def test_mock_data_builds_linked_records(db):
    rng = random.Random(7)

    organizations = seed_mock_data.create_organizations(db, rng, count=4)
    contacts = seed_mock_data.create_contacts(db, rng, organizations, count=10)
    activities = seed_mock_data.create_activities(db, rng, contacts, per_contact=2)

    assert len(organizations) == 4
    assert organizations[0].parent_organization_id is None
    assert organizations[3].parent_organization_id == organizations[0].id

    assert len(contacts) == 10
    # Every fifth contact is left without an organization
    assert contacts[0].organization_id is None
    assert contacts[5].organization_id is None
    assert all(c.organization_id is not None for i, c in enumerate(contacts) if i % 5)

    assert len(activities) == 20
    listed = activity_service.list_activities(db)
    dates = [a.activity_date for a in listed]
    assert dates == sorted(dates, reverse=True)


def test_domain_from_name():
    assert seed_mock_data.domain_from_name("Margie's Travel") == "margiestravel.com"
    assert seed_mock_data.domain_from_name("!!!") == "company.com"
