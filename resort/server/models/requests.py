"""Request models for the resort API.

Field aliases accept the camelCase keys the React front-end sends.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from resort.conf.payment_config import DEFAULT_CURRENCY, LEAD_STATUSES, STAFF_ROLES


class ChatMessage(BaseModel):
    role: str = Field(default="user")
    content: str = Field(default="")

    model_config = ConfigDict(extra="ignore")


class ChatRequest(BaseModel):
    """Body of the chat-assistant endpoint.

    ``messages`` is the full transcript including the new guest turn.
    """

    messages: list[ChatMessage] = Field(min_length=1)
    session_id: str | None = Field(
        default=None, validation_alias=AliasChoices("sessionId", "session_id")
    )
    user_id: str | None = Field(default=None, validation_alias=AliasChoices("userId", "user_id"))

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def transcript(self) -> list[dict[str, str]]:
        return [m.model_dump() for m in self.messages]


class PaymentOrderRequest(BaseModel):
    amount: float = Field(gt=0, description="Amount in major units (rupees)")
    currency: str = Field(default=DEFAULT_CURRENCY, min_length=3, max_length=3)
    receipt: str | None = Field(default=None, max_length=40)

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @field_validator("currency")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()


class EmbedContentRequest(BaseModel):
    content: str = Field(min_length=1)
    source_url: str | None = Field(
        default=None, validation_alias=AliasChoices("source_url", "sourceUrl")
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LeadStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in LEAD_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(LEAD_STATUSES)}")
        return value


class ResortSettingsUpdate(BaseModel):
    resort_name: str | None = Field(
        default=None, validation_alias=AliasChoices("resort_name", "resortName")
    )
    location: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")


class PaymentSettingsUpdate(BaseModel):
    config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool | None = Field(
        default=None, validation_alias=AliasChoices("is_active", "isActive")
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StaffInviteRequest(BaseModel):
    email: str | None = None
    full_name: str | None = Field(
        default=None, validation_alias=AliasChoices("fullName", "full_name")
    )
    role: str = Field(default="staff")

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    @field_validator("role")
    @classmethod
    def _known_role(cls, value: str) -> str:
        value = (value or "staff").lower()
        if value not in STAFF_ROLES:
            raise ValueError(f"role must be one of: {', '.join(STAFF_ROLES)}")
        return value


class StaffCreateRequest(StaffInviteRequest):
    password: str = Field(min_length=6)
