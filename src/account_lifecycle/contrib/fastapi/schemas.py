"""Request and response bodies of the HTTP surface (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TFA_CODE_PATTERN = r"^\d{6}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ═══════════════════════════════════════════════════════════════
# REQUESTS
# ═══════════════════════════════════════════════════════════════


class RegisterRequest(CamelModel):
    """Registration body. Field rules are enforced by the coordinator so that
    every violation is reported in one response."""

    email: str = ""
    password: str = ""
    confirm_password: str = ""
    full_name: str = ""
    username: str = ""
    phone: str | None = None


class PasswordRequest(CamelModel):
    email: str


class PasswordResetRequest(CamelModel):
    email: str
    code: str
    new_password: str
    confirm_new_password: str


class VerifyEmailRequest(CamelModel):
    email: str = ""


class TfaCodeRequest(CamelModel):
    code: str = Field(pattern=TFA_CODE_PATTERN)


# ═══════════════════════════════════════════════════════════════
# RESPONSES
# ═══════════════════════════════════════════════════════════════


class RegisterResponse(CamelModel):
    uid: str
    email: str | None


class OperationResponse(CamelModel):
    success: bool
    message: str


class VerifyTokenData(CamelModel):
    uid: str
    email: str | None
    email_verified: bool
    phone_number: str | None
    name: str | None
    user_name: str | None
    tfa_enabled: bool


class VerifyTokenResponse(CamelModel):
    success: bool = True
    data: VerifyTokenData


class LoginResponse(CamelModel):
    tfa_required: bool
    token: str | None
    authenticated: bool


class LoginTfaResponse(CamelModel):
    custom_token: str
    authenticated: bool


__all__: list[str] = [
    "LoginResponse",
    "LoginTfaResponse",
    "OperationResponse",
    "PasswordRequest",
    "PasswordResetRequest",
    "RegisterRequest",
    "RegisterResponse",
    "TFA_CODE_PATTERN",
    "TfaCodeRequest",
    "VerifyEmailRequest",
    "VerifyTokenData",
    "VerifyTokenResponse",
]
