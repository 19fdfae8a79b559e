"""Pydantic models for the webhook server.

Two families live here:

- Request bodies of the subscription API (``/hears``, ``/send`` and friends),
  which keep the camelCase field names callers send.
- Slack Events API envelopes, parsed by :func:`deserialize`.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

__all__: list[str] = [
    "HearsRequest",
    "ReceivesRequest",
    "UnsubscribeRequest",
    "ReplyRequest",
    "CloseRequest",
    "SendRequest",
    "OperationResult",
    "UrlVerificationModel",
    "SlackEventModel",
    "deserialize",
]


class _ApiRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class HearsRequest(_ApiRequest):
    """Body of ``POST /hears``."""

    app_id: str = Field(alias="appID")
    subscription_id: str = Field(alias="subscriptionID")
    channel: str
    pattern: str


class ReceivesRequest(_ApiRequest):
    """Body of ``POST /receives``."""

    app_id: str = Field(alias="appID")
    subscription_id: str = Field(alias="subscriptionID")
    pattern: str


class UnsubscribeRequest(_ApiRequest):
    """Body of ``POST /unhears`` and ``POST /unreceives``."""

    subscription_id: str = Field(alias="subscriptionID")


class ReplyRequest(_ApiRequest):
    """Body of ``POST /hears/reply`` and ``POST /receives/reply``."""

    app_id: str = Field(alias="appID")
    event_id: str = Field(alias="eventID")
    text: str


class CloseRequest(_ApiRequest):
    """Body of ``POST /hears/close`` and ``POST /receives/close``."""

    event_id: str = Field(alias="eventID")


class SendRequest(_ApiRequest):
    """Body of ``POST /send``."""

    app_id: str = Field(alias="appID")
    channel: str
    text: str


class OperationResult(BaseModel):
    """Response of every subscription API call; the HTTP status is always 200."""

    ok: bool


class UrlVerificationModel(BaseModel):
    """Slack's one-off endpoint verification request."""

    model_config = ConfigDict(extra="allow")

    type: Literal["url_verification"]
    challenge: str
    token: Optional[str] = None


class SlackEventModel(BaseModel):
    """An ``event_callback`` envelope. ``event`` stays raw until the event type is known."""

    model_config = ConfigDict(extra="allow")

    type: Literal["event_callback"]
    event: Dict[str, Any]
    team_id: Optional[str] = None
    api_app_id: Optional[str] = None
    event_id: Optional[str] = None
    event_time: Optional[int] = None

    @property
    def event_type(self) -> str:
        return str(self.event.get("type", "unknown"))


def deserialize(data: Dict[str, Any]) -> Union[UrlVerificationModel, SlackEventModel]:
    """Parse a Slack Events API request body.

    Raises
    ------
    ValueError
        If the body is neither a URL verification nor an event callback
    pydantic.ValidationError
        If the body has the right ``type`` but the wrong shape
    """
    payload_type = data.get("type")
    if payload_type == "url_verification":
        return UrlVerificationModel.model_validate(data)
    if payload_type == "event_callback":
        return SlackEventModel.model_validate(data)
    raise ValueError(f"Unsupported Slack payload type: {payload_type}")
