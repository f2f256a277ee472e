"""
Outbound notifications (email verification).

The core treats delivery as opaque: it hands a recipient and a callback URL to
a ``Notifier``. ``LogNotifier`` only logs; ``WebhookNotifier`` POSTs the
message to a mail relay. Failures are logged and never reach the caller.
"""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from crewtodo.core.config import get_settings

log = structlog.get_logger()


class Notifier(Protocol):
    async def send_verification_email(self, email: str, callback_url: str) -> None: ...


class LogNotifier:
    async def send_verification_email(self, email: str, callback_url: str) -> None:
        log.info("notifier.verification_email", email=email, callback_url=callback_url)


class WebhookNotifier:
    def __init__(self, url: str, request_timeout: float = 10.0):
        self._url = url
        self._request_timeout = request_timeout

    async def send_verification_email(self, email: str, callback_url: str) -> None:
        async with httpx.AsyncClient(timeout=httpx.Timeout(self._request_timeout)) as client:
            resp = await client.post(
                self._url,
                json={
                    "kind": "verify_email",
                    "to": email,
                    "callback_url": callback_url,
                },
            )
            resp.raise_for_status()


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """FastAPI dependency; override it in tests."""
    global _notifier
    if _notifier is None:
        settings = get_settings()
        if settings.notifier_webhook_url:
            _notifier = WebhookNotifier(settings.notifier_webhook_url)
        else:
            _notifier = LogNotifier()
    return _notifier


async def deliver_verification_email(notifier: Notifier, email: str, callback_url: str) -> None:
    """Background task body: one delivery attempt, failures logged."""
    try:
        await notifier.send_verification_email(email, callback_url)
    except httpx.HTTPStatusError as exc:
        log.warning("notifier.rejected", email=email, status=exc.response.status_code)
    except httpx.HTTPError as exc:
        log.warning("notifier.unreachable", email=email, error=str(exc))
