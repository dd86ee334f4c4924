"""Activity service - calls, emails, meetings, notes and tasks per contact."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import ConstraintViolation, NotFoundError
from app.db.models import Activity
from app.schemas.crm import ActivityCreate, ActivityUpdate


def create_activity(db: Session, data: ActivityCreate) -> Activity:
    """
    Log an activity against a contact.

    Raises:
        ConstraintViolation: contact does not exist (enforced by the foreign key)
    """
    activity = Activity(**data.model_dump(mode="python"))
    activity.type = data.type.value
    db.add(activity)
    _commit(db)
    return activity


def list_activities(db: Session) -> list[Activity]:
    """List all activities, most recent activity_date first."""
    stmt = (
        select(Activity)
        .options(joinedload(Activity.contact))
        .order_by(Activity.activity_date.desc())
    )
    return list(db.scalars(stmt).unique())


def list_activities_for_contact(db: Session, contact_id: UUID) -> list[Activity]:
    """List a contact's activities, most recent first."""
    stmt = (
        select(Activity)
        .options(joinedload(Activity.contact))
        .where(Activity.contact_id == contact_id)
        .order_by(Activity.activity_date.desc())
    )
    return list(db.scalars(stmt).unique())


def get_activity(db: Session, activity_id: UUID) -> Activity:
    """
    Get an activity with its contact.

    Raises:
        NotFoundError: no activity with this id
    """
    stmt = (
        select(Activity)
        .options(joinedload(Activity.contact))
        .where(Activity.id == activity_id)
    )
    activity = db.scalars(stmt).unique().first()
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return activity


def update_activity(db: Session, activity_id: UUID, data: ActivityUpdate) -> Activity:
    activity = get_activity(db, activity_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("type") is not None:
        changes["type"] = changes["type"].value
    for field, value in changes.items():
        setattr(activity, field, value)
    _commit(db)
    db.expire(activity)
    return get_activity(db, activity_id)


def delete_activity(db: Session, activity_id: UUID) -> None:
    activity = get_activity(db, activity_id)
    db.delete(activity)
    _commit(db)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConstraintViolation("Activity violates a database constraint") from exc
