"""Pydantic models describing the identify request and response payloads."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from contact_identity.domain.errors import InvalidIdentifyRequestError
from contact_identity.domain.model import ConsolidatedIdentity, IdentifyRequest


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class IdentifyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class IdentifyPayload(IdentifyBaseModel):
    email: str | None = None
    phone_number: str | None = Field(default=None, alias="phoneNumber")

    _normalize_email = field_validator("email", mode="before")(_blank_to_none)

    @field_validator("phone_number", mode="before")
    @classmethod
    def _normalize_phone_number(cls, value: object) -> object:
        # Clients commonly send phone numbers as JSON integers.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        local, at, domain = value.partition("@")
        if not at or not local or not domain or "@" in domain:
            raise ValueError("Invalid email format")
        return value

    @model_validator(mode="after")
    def _require_contact_fact(self) -> Self:
        if self.email is None and self.phone_number is None:
            raise ValueError("At least one of 'email' or 'phoneNumber' must be provided")
        return self

    def to_request(self) -> IdentifyRequest:
        return IdentifyRequest(email=self.email, phone_number=self.phone_number)


class ConsolidatedContactModel(IdentifyBaseModel):
    primary_contact_id: int = Field(alias="primaryContactId")
    emails: list[str]
    phone_numbers: list[str] = Field(alias="phoneNumbers")
    secondary_contact_ids: list[int] = Field(alias="secondaryContactIds")

    @classmethod
    def from_identity(cls, identity: ConsolidatedIdentity) -> ConsolidatedContactModel:
        return cls(
            primary_contact_id=identity.primary_contact_id,
            emails=list(identity.emails),
            phone_numbers=list(identity.phone_numbers),
            secondary_contact_ids=list(identity.secondary_contact_ids),
        )


class IdentifyResponseModel(IdentifyBaseModel):
    contact: ConsolidatedContactModel

    @classmethod
    def from_identity(cls, identity: ConsolidatedIdentity) -> IdentifyResponseModel:
        return cls(contact=ConsolidatedContactModel.from_identity(identity))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def parse_identify_payload(data: object) -> IdentifyPayload:
    """Validate a raw payload, raising ``InvalidIdentifyRequestError`` on bad input."""

    try:
        return IdentifyPayload.model_validate(data)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidIdentifyRequestError(f"Validation failed: {details}") from exc
