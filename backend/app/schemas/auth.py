"""Auth Schemas — registration, login and password reset payloads.

Invariants:
    - Emails are validated and lowercased before lookup
    - Passwords are at least 6 characters
"""

from pydantic import EmailStr, Field, field_validator

from app.schemas.base import CamelModel

MIN_PASSWORD_LENGTH = 6


class _EmailModel(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class RegisterRequest(_EmailModel):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=200)
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)


class LoginRequest(_EmailModel):
    password: str = Field(min_length=1, max_length=200)


class ForgotPasswordRequest(_EmailModel):
    pass


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=200)


class PromoteAdminRequest(_EmailModel):
    secret: str = Field(min_length=1)
