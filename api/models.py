"""
API request and response models for OrgGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Wire names are camelCase (firstName, accessToken, orgId). Every model derives
from _WireModel, whose alias generator produces those names; Python code uses
snake_case attributes and dumps with by_alias=True.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import Organisation, User

# ---------------------------------------------------------------------------
# Field error messages
#
# One fixed message per request field. validation_error_handler in
# api/main.py reports the first failure of each field with this text instead
# of Pydantic's generic wording.
# ---------------------------------------------------------------------------

FIELD_MESSAGES: dict[str, str] = {
    "email": "Invalid email address",
    "firstName": "First name must be between 1 and 50 characters",
    "lastName": "Last name must be between 1 and 50 characters",
    "password": "Password must be between 8 and 72 characters long",
    "phone": "Phone must be at most 30 characters",
    "name": "Name must be between 1 and 20 characters",
    "description": "Description must be between 1 and 100 characters",
    "userId": "User id must be an integer",
}

EMAIL_TOO_LONG = "Email must be at most 100 characters"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(_WireModel):
    """Request body for POST /auth/register."""

    email: EmailStr
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=8, max_length=72)
    phone: Optional[str] = Field(default=None, max_length=30)

    @field_validator("email", mode="before")
    @classmethod
    def limit_email_length(cls, value):
        if isinstance(value, str) and len(value) > 100:
            raise ValueError(EMAIL_TOO_LONG)
        return value


class LoginRequest(_WireModel):
    email: str
    password: str


class OrganisationCreate(_WireModel):
    name: str = Field(min_length=1, max_length=20)
    description: Optional[str] = Field(default=None, min_length=1, max_length=100)


class AddUserRequest(_WireModel):
    user_id: int


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserOut(_WireModel):
    """Public projection of a user. The password hash has no field here."""

    user_id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            user_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            phone=user.phone,
        )


class OrganisationOut(_WireModel):
    org_id: int
    name: str
    description: Optional[str] = None

    @classmethod
    def from_organisation(cls, org: Organisation) -> "OrganisationOut":
        return cls(org_id=org.id, name=org.name, description=org.description)


class AuthData(_WireModel):
    access_token: str
    user: UserOut


class AuthResponse(_WireModel):
    status: str = "success"
    message: str
    data: AuthData


class UserResponse(_WireModel):
    status: str = "success"
    message: str = "user record"
    data: UserOut


class OrganisationList(_WireModel):
    organisations: list[OrganisationOut]


class OrganisationListResponse(_WireModel):
    status: str = "success"
    message: str = "Organisations user belongs to."
    data: OrganisationList


class OrganisationResponse(_WireModel):
    status: str = "success"
    message: str
    data: OrganisationOut


class AckResponse(_WireModel):
    status: str = "success"
    message: str


class FieldError(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """422 body: one entry per failing request field."""

    errors: list[FieldError]


class ErrorResponse(_WireModel):
    """Envelope for every non-validation failure."""

    status: str
    message: str
    status_code: int


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
