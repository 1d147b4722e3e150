"""
WhatsApp Webhook Receiver

FastAPI router (and app factory) that receives Meta Cloud API webhooks.

Responsibilities:
- Answer the subscription handshake
- Verify the X-Hub-Signature-256 of every delivery
- Normalize the payload and hand each event to the caller's handler
"""

import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request, Response

from waba_cloud.contracts.events import WebhookEvent
from waba_cloud.errors import InvalidSignatureError, WebhookVerificationError
from waba_cloud.webhook import SIGNATURE_HEADER, parse_webhook_with_signature, verify_webhook

logger = logging.getLogger(__name__)

EventHandler = Callable[[WebhookEvent], Awaitable[None]]


def create_webhook_router(
    verify_token: str,
    app_secret: str,
    handler: EventHandler,
    path: str = "/webhook",
) -> APIRouter:
    """
    Build the webhook routes.

    Args:
        verify_token: Token configured in the Meta App dashboard
        app_secret: Meta App Secret used to sign deliveries
        handler: Coroutine called once per normalized event, in order
        path: Route path for both GET and POST
    """
    router = APIRouter()

    @router.get(path)
    async def handshake(
        hub_mode: str | None = Query(None, alias="hub.mode"),
        hub_verify_token: str | None = Query(None, alias="hub.verify_token"),
        hub_challenge: str | None = Query(None, alias="hub.challenge"),
    ):
        """
        Handle Meta webhook verification.

        Meta sends a GET request with hub.mode, hub.verify_token, and hub.challenge.
        We must return hub.challenge if the token matches.
        """
        query = {
            "hub.mode": hub_mode,
            "hub.verify_token": hub_verify_token,
            "hub.challenge": hub_challenge,
        }
        try:
            challenge = verify_webhook(query, verify_token)
        except WebhookVerificationError:
            raise HTTPException(status_code=403, detail="Verification failed")

        return Response(content=challenge, media_type="text/plain")

    @router.post(path)
    async def receive(request: Request):
        """
        Receive a webhook delivery.

        The raw body is checked before any JSON decoding.
        """
        body = await request.body()
        signature = request.headers.get(SIGNATURE_HEADER, "")

        try:
            events = parse_webhook_with_signature(body, signature, app_secret)
        except InvalidSignatureError:
            raise HTTPException(status_code=403, detail="Invalid signature")

        for event in events:
            await handler(event)

        logger.info("Processed webhook delivery", extra={"events": len(events)})
        return {"status": "ok", "events": len(events)}

    return router


def create_app(
    verify_token: str,
    app_secret: str,
    handler: EventHandler,
) -> FastAPI:
    """Create a standalone receiver app with /webhook and /health."""
    app = FastAPI(
        title="WhatsApp Webhook",
        description="Receives WhatsApp Cloud API webhooks",
        version="1.0.0",
    )

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(create_webhook_router(verify_token, app_secret, handler))
    return app
