"""Pydantic schemas for service inputs and outputs."""

from app.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenPayload,
    TokenResponse,
    UserRead,
)
from app.schemas.crm import (
    ActivityCreate,
    ActivityRead,
    ActivityUpdate,
    ContactCreate,
    ContactRead,
    ContactUpdate,
    OrganizationCreate,
    OrganizationRead,
    OrganizationUpdate,
)
from app.schemas.validation import FieldError, ValidationResult, validate_payload
