"""
Seed script to create mock organizations, contacts and activities for local demos.
Run with: python -m scripts.seed_mock_data

Requires a migrated database (python -m app.cli bootstrap). Refuses to run
outside development/test.
"""

import os
import random
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.core.config import load_settings
from app.db.enums import ActivityType
from app.db.models import Activity, Contact, Organization
from app.db.session import create_engine_with_settings, create_session_factory
from app.schemas.crm import ActivityCreate, ContactCreate, OrganizationCreate
from app.services import activity_service, contact_service, organization_service

# Sample data pools
COMPANY_NAMES = [
    "Northwind Traders", "Contoso", "Fabrikam", "Tailspin Toys", "Litware",
    "Adventure Works", "Wide World Importers", "Proseware", "Lucerne Publishing",
    "Coho Winery", "Alpine Ski House", "Margie's Travel",
]

INDUSTRIES = [
    "Manufacturing", "Retail", "Software", "Logistics", "Publishing",
    "Hospitality", "Healthcare", "Finance", "Education",
]

FIRST_NAMES = [
    "Emma", "Olivia", "Liam", "Noah", "Ava", "Sophia", "Mason", "Lucas",
    "Mia", "Ethan", "Amelia", "Harper", "James", "Elijah", "Grace", "Leah",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
    "Wilson", "Anderson", "Taylor", "Moore", "Martin", "Lee", "Clark", "Walker",
]

JOB_TITLES = [
    "CEO", "CTO", "Head of Sales", "HR Director", "Account Manager",
    "Procurement Lead", "Office Manager", "Engineer",
]

ACTIVITY_SUBJECTS = {
    ActivityType.CALL: ["Intro call", "Follow-up call", "Pricing discussion"],
    ActivityType.EMAIL: ["Sent proposal", "Shared case study", "Contract draft"],
    ActivityType.MEETING: ["On-site visit", "Quarterly review", "Product demo"],
    ActivityType.NOTE: ["Budget approved", "Prefers email contact", "Decision in Q3"],
    ActivityType.TASK: ["Send invoice", "Prepare quote", "Schedule onboarding"],
}


def random_phone(rng: random.Random) -> str:
    """Generate random US phone number in E.164 format."""
    return f"+1{rng.randint(200, 999)}{rng.randint(100, 999)}{rng.randint(1000, 9999)}"


def domain_from_name(name: str) -> str:
    slug = "".join(ch for ch in name.lower() if ch.isalnum())
    return f"{slug or 'company'}.com"


def create_organizations(db: Session, rng: random.Random, count: int = 6) -> list[Organization]:
    """Create organizations; every third one becomes a subsidiary of the first."""
    organizations: list[Organization] = []
    for idx in range(count):
        name = COMPANY_NAMES[idx % len(COMPANY_NAMES)]
        if idx >= len(COMPANY_NAMES):
            name = f"{name} {idx // len(COMPANY_NAMES) + 1}"
        domain = domain_from_name(name)
        parent_id = organizations[0].id if organizations and idx % 3 == 0 else None
        org = organization_service.create_organization(
            db,
            OrganizationCreate(
                name=name,
                industry=rng.choice(INDUSTRIES),
                website=f"https://www.{domain}",
                email=f"info@{domain}",
                phone=random_phone(rng),
                parent_organization_id=parent_id,
            ),
        )
        organizations.append(org)
    return organizations


def create_contacts(
    db: Session,
    rng: random.Random,
    organizations: list[Organization],
    count: int = 20,
) -> list[Contact]:
    """Create contacts spread over the organizations; a few stay unattached."""
    contacts: list[Contact] = []
    for idx in range(count):
        first = rng.choice(FIRST_NAMES)
        last = rng.choice(LAST_NAMES)
        org = rng.choice(organizations) if organizations and idx % 5 else None
        domain = domain_from_name(org.name) if org else "gmail.com"
        contact = contact_service.create_contact(
            db,
            ContactCreate(
                first_name=first,
                last_name=last,
                email=f"{first.lower()}.{last.lower()}{idx}@{domain}",
                phone=random_phone(rng),
                job_title=rng.choice(JOB_TITLES),
                organization_id=org.id if org else None,
            ),
        )
        contacts.append(contact)
    return contacts


def create_activities(
    db: Session,
    rng: random.Random,
    contacts: list[Contact],
    per_contact: int = 3,
) -> list[Activity]:
    """Log a few activities over the last 90 days for each contact."""
    now = datetime.now(timezone.utc)
    activities: list[Activity] = []
    for contact in contacts:
        for _ in range(per_contact):
            activity_type = rng.choice(list(ActivityType))
            activity = activity_service.create_activity(
                db,
                ActivityCreate(
                    type=activity_type,
                    subject=rng.choice(ACTIVITY_SUBJECTS[activity_type]),
                    activity_date=now - timedelta(days=rng.randint(0, 90), hours=rng.randint(0, 23)),
                    contact_id=contact.id,
                ),
            )
            activities.append(activity)
    return activities


def main():
    """Main entry point."""
    settings = load_settings()
    if not settings.is_development:
        print(f"ERROR: Mock data is only for development/test (NODE_ENV={settings.NODE_ENV}).")
        return

    print("Seeding mock data...")

    engine = create_engine_with_settings(settings)
    db = create_session_factory(engine)()
    rng = random.Random(os.getenv("SEED_RANDOM"))

    try:
        org_count = int(os.getenv("SEED_ORGANIZATIONS", "6"))
        contact_count = int(os.getenv("SEED_CONTACTS", "20"))
        activities_per_contact = int(os.getenv("SEED_ACTIVITIES_PER_CONTACT", "3"))

        organizations = create_organizations(db, rng, count=org_count)
        contacts = create_contacts(db, rng, organizations, count=contact_count)
        activities = create_activities(db, rng, contacts, per_contact=activities_per_contact)

        print("\nMock data seeded successfully!")
        print(f"  - {len(organizations)} organizations created")
        print(f"  - {len(contacts)} contacts created")
        print(f"  - {len(activities)} activities created")

    except Exception as e:
        print(f"ERROR: {e}")
        db.rollback()
        raise
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
