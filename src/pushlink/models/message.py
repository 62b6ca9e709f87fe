"""
Message models — outbound intents and inbound upstream envelopes.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Message(BaseModel):
    """A downstream message before encoding.

    ``to`` and ``message_id`` may each be missing while a message is being
    assembled, but anything handed to the transport carries both.
    """

    to: Optional[str] = None
    message_id: Optional[str] = None
    payload: dict[str, str] = Field(default_factory=dict)
    collapse_key: Optional[str] = None
    time_to_live: Optional[int] = None  # seconds
    delay_while_idle: Optional[bool] = None

    @field_validator("payload", mode="before")
    @classmethod
    def _payload_not_none(cls, value: Any) -> Any:
        return {} if value is None else value


class InboundEnvelope(BaseModel):
    """An upstream message as received from the relay."""

    model_config = ConfigDict(frozen=True)

    sender: str = Field("", alias="from")
    category: str = ""
    message_id: str = ""
    payload: dict[str, str] = Field(default_factory=dict, alias="data")
    message_type: Optional[str] = None

    @field_validator("sender", "category", "message_id", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("payload", mode="before")
    @classmethod
    def _as_text_mapping(cls, value: Any) -> dict[str, str]:
        # "data" missing or not an object is treated as an empty payload
        if not isinstance(value, dict):
            return {}
        return {str(k): v if isinstance(v, str) else str(v) for k, v in value.items()}

    @field_validator("message_type", mode="before")
    @classmethod
    def _type_as_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)


class ParseFailure(BaseModel):
    """Returned by the codec when an inbound payload cannot be decoded."""

    model_config = ConfigDict(frozen=True)

    text: str
    reason: str
