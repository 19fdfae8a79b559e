"""Slack bridge HTTP server (FastAPI).

This module attaches the bridge routes to the web application:

- ``POST /slack/events``: Slack Events API webhook. Verifies the request
  signature, answers URL verification challenges and hands ``message`` and
  ``app_mention`` events to the subscription service.
- The subscription API used by the runtime: ``/hears``, ``/unhears``,
  ``/receives``, ``/unreceives``, ``/hears/reply``, ``/receives/reply``,
  ``/hears/close``, ``/receives/close`` and ``/send``. Each answers HTTP 200
  with ``{"ok": <bool>}``; the status code never reflects the outcome.
- ``GET /health``: liveness plus listener and retained-event counts.

Quick Examples
==============

.. code-block:: bash

    # Subscribe to "deploy" in #ops
    curl -X POST http://localhost:9003/hears \
         -H "Content-Type: application/json" \
         -d '{"appID": "app-1", "subscriptionID": "sub-1", "channel": "#ops", "pattern": "deploy"}'

    # Reply in the thread of a forwarded event
    curl -X POST http://localhost:9003/hears/reply \
         -H "Content-Type: application/json" \
         -d '{"appID": "app-1", "eventID": "1700000000.000100", "text": "Deploying"}'
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Final, Optional

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slack_sdk.signature import SignatureVerifier

from slack_bridge.subscription import MessageEvent, SlackEventType, SubscriptionService

from .app import web_factory
from .models import (
    CloseRequest,
    HearsRequest,
    OperationResult,
    ReceivesRequest,
    ReplyRequest,
    SendRequest,
    SlackEventModel,
    UnsubscribeRequest,
    UrlVerificationModel,
    deserialize,
)

__all__: list[str] = [
    "create_slack_app",
    "verify_slack_request",
    "SLACK_EVENTS_PATH",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

SLACK_EVENTS_PATH: Final[str] = "/slack/events"

_SUBSCRIBED_EVENT_TYPES: Final[frozenset[str]] = frozenset(t.value for t in SlackEventType)


async def verify_slack_request(request: Request, signing_secret: str) -> bool:
    """Verify that the request is coming from Slack.

    Parameters
    ----------
    request : Request
        The FastAPI request object
    signing_secret : str
        The Slack signing secret

    Returns
    -------
    bool
        True if the request is valid, False otherwise
    """
    if not signing_secret:
        _LOG.error("Slack signing key is empty, rejecting request")
        return False

    verifier = SignatureVerifier(signing_secret)

    signature = request.headers.get("X-Slack-Signature", "")
    timestamp = request.headers.get("X-Slack-Request-Timestamp", "")
    if not signature or not timestamp:
        return False

    body = await request.body()
    body_str = body.decode("utf-8", errors="replace")

    try:
        return verifier.is_valid(signature=signature, timestamp=timestamp, body=body_str)
    except ValueError:
        # non-numeric timestamp header
        return False


def _dispatch_slack_event(service: SubscriptionService, envelope: SlackEventModel) -> None:
    event_type = envelope.event_type
    if event_type not in _SUBSCRIBED_EVENT_TYPES:
        _LOG.debug(f"Ignoring Slack event of type '{event_type}'")
        return

    try:
        event = MessageEvent.model_validate(envelope.event)
    except ValidationError as e:
        # e.g. message_deleted carries no user/text
        _LOG.debug(f"Ignoring incomplete '{event_type}' event: {e.error_count()} validation error(s)")
        return

    service.handle_event(event)


def _result(ok: bool, operation: str) -> OperationResult:
    if not ok:
        _LOG.info(f"Operation '{operation}' did not succeed")
    return OperationResult(ok=ok)


def create_slack_app(
    service: SubscriptionService,
    signing_secret: str,
    lifespan: Optional[Callable[[FastAPI], Any]] = None,
) -> FastAPI:
    """Create the FastAPI app exposing the bridge.

    Parameters
    ----------
    service : SubscriptionService
        The service every route delegates to
    signing_secret : str
        Slack signing secret used to verify ``/slack/events`` requests
    lifespan : Optional[Callable[[FastAPI], Any]]
        Lifespan context for startup/shutdown work

    Returns
    -------
    FastAPI
        The FastAPI app
    """
    app = web_factory.create(lifespan=lifespan) if lifespan is not None else web_factory.create()
    app.state.subscription_service = service

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint for monitoring and load balancers."""
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={
                "status": "healthy",
                "service": "slack-bridge",
                "components": {
                    "listeners": len(service.listeners),
                    "retained_events": len(service.events),
                },
            },
        )

    @app.post(SLACK_EVENTS_PATH)
    async def slack_events(request: Request) -> Response:
        """Handle Slack Events API requests."""
        if not await verify_slack_request(request, signing_secret):
            _LOG.warning("Invalid Slack request signature")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid request signature")

        body = await request.body()
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is not JSON")

        try:
            model = deserialize(payload)
        except (ValueError, ValidationError) as e:
            _LOG.debug(f"Acknowledging unsupported Slack payload: {e}")
            return JSONResponse(content={"status": "ok"})

        if isinstance(model, UrlVerificationModel):
            _LOG.info("Handling URL verification challenge")
            return JSONResponse(content={"challenge": model.challenge})

        _LOG.debug(f"Received Slack event: {model.event_type}")
        _dispatch_slack_event(service, model)

        # Return 200 OK to acknowledge receipt of the event
        return JSONResponse(content={"status": "ok"})

    @app.post("/hears")
    async def hears(body: HearsRequest) -> OperationResult:
        try:
            ok = await service.add_message_listener(body.app_id, body.subscription_id, body.channel, body.pattern)
        except re.error as e:
            _LOG.warning(f"Rejected listener {body.subscription_id}: invalid pattern ({e})")
            ok = False
        return _result(ok, "hears")

    @app.post("/unhears")
    async def unhears(body: UnsubscribeRequest) -> OperationResult:
        return _result(service.remove_message_listener(body.subscription_id), "unhears")

    @app.post("/receives")
    async def receives(body: ReceivesRequest) -> OperationResult:
        try:
            ok = await service.add_mention_listener(body.app_id, body.subscription_id, body.pattern)
        except re.error as e:
            _LOG.warning(f"Rejected listener {body.subscription_id}: invalid pattern ({e})")
            ok = False
        return _result(ok, "receives")

    @app.post("/unreceives")
    async def unreceives(body: UnsubscribeRequest) -> OperationResult:
        return _result(service.remove_mention_listener(body.subscription_id), "unreceives")

    async def event_reply(body: ReplyRequest) -> OperationResult:
        return _result(await service.reply(body.app_id, body.event_id, body.text), "reply")

    async def event_close(body: CloseRequest) -> OperationResult:
        return _result(service.remove_event(body.event_id), "close")

    for prefix in ("/hears", "/receives"):
        app.add_api_route(f"{prefix}/reply", event_reply, methods=["POST"], response_model=OperationResult)
        app.add_api_route(f"{prefix}/close", event_close, methods=["POST"], response_model=OperationResult)

    @app.post("/send")
    async def send(body: SendRequest) -> OperationResult:
        return _result(await service.send_message(body.app_id, body.channel, body.text), "send")

    return app
