"""CRM Pydantic schemas (contacts, organizations, activities).

Update schemas carry only optional fields; services merge the fields that
were explicitly set (``model_dump(exclude_unset=True)``).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.db.enums import ActivityType


# =============================================================================
# Organizations
# =============================================================================

class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    industry: str | None = Field(None, max_length=100)
    website: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    description: str | None = None
    parent_organization_id: UUID | None = None


class OrganizationUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    industry: str | None = Field(None, max_length=100)
    website: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    description: str | None = None
    parent_organization_id: UUID | None = None


class OrganizationSummary(BaseModel):
    id: UUID
    name: str

    model_config = {"from_attributes": True}


class OrganizationRead(BaseModel):
    id: UUID
    name: str
    industry: str | None = None
    website: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    description: str | None = None
    parent_organization_id: UUID | None = None
    parent_organization: OrganizationSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Contacts
# =============================================================================

class ContactCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    job_title: str | None = Field(None, max_length=100)
    notes: str | None = None
    organization_id: UUID | None = None


class ContactUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    job_title: str | None = Field(None, max_length=100)
    notes: str | None = None
    organization_id: UUID | None = None


class ContactSummary(BaseModel):
    id: UUID
    first_name: str
    last_name: str

    model_config = {"from_attributes": True}


class ContactRead(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    job_title: str | None = None
    notes: str | None = None
    organization_id: UUID | None = None
    organization: OrganizationSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Activities
# =============================================================================

class ActivityCreate(BaseModel):
    type: ActivityType
    subject: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    activity_date: datetime
    contact_id: UUID


class ActivityUpdate(BaseModel):
    type: ActivityType | None = None
    subject: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    activity_date: datetime | None = None
    contact_id: UUID | None = None


class ActivityRead(BaseModel):
    id: UUID
    type: ActivityType
    subject: str
    description: str | None = None
    activity_date: datetime
    contact_id: UUID
    contact: ContactSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
