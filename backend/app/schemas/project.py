"""Project Schemas — project CRUD, tracking verification and ownership transfer."""

from pydantic import EmailStr, Field, field_validator

from app.schemas.base import CamelModel


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


class ProjectCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    domain: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    status: str = Field("active", pattern=r"^(active|paused|archived)$")

    @field_validator("name", "domain")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _strip_required(v)


class ProjectUpdate(CamelModel):
    """Only these four fields are client-editable."""
    name: str | None = Field(None, min_length=1, max_length=255)
    domain: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    status: str | None = Field(None, pattern=r"^(active|paused|archived)$")

    @field_validator("name", "domain")
    @classmethod
    def strip_required(cls, v: str | None) -> str | None:
        return _strip_required(v) if v is not None else v


class VerifyTrackingRequest(CamelModel):
    url: str | None = Field(None, max_length=2000)


class TransferRequest(CamelModel):
    email: EmailStr
