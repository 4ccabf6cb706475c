from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import requests
from py_vapid import Vapid
from pywebpush import WebPushException, webpush

from footy_alerts.api.models import Subscription

logger = logging.getLogger(__name__)

# Push services answer 404/410 once a browser has unsubscribed.
_GONE_STATUS_CODES = frozenset({404, 410})


class PushError(RuntimeError):
    def __init__(self, message: str, *, endpoint: str) -> None:
        super().__init__(message)
        self.endpoint = endpoint


class PushEndpointGone(PushError):
    """The endpoint is permanently invalid; the subscription should be deactivated."""


class PushTransientError(PushError):
    """Anything else. Logged and dropped, never retried."""


def validate_vapid_key(private_key: str) -> None:
    """Raise ValueError unless `private_key` loads as a VAPID EC private key."""

    try:
        Vapid.from_string(private_key=private_key)
    except Exception as e:
        raise ValueError(f"Invalid VAPID private key: {e}") from e


class PushSender(Protocol):
    async def send(self, *, subscription: Subscription, payload: str) -> None:  # pragma: no cover
        ...


class WebPushSender:
    """VAPID-signed Web Push delivery via pywebpush.

    pywebpush is blocking, so each send runs in a worker thread.
    """

    def __init__(self, *, private_key: str, subject: str, ttl_s: int = 3600) -> None:
        self._private_key = private_key
        self._claims = {"sub": subject}
        self._ttl_s = ttl_s

    async def send(self, *, subscription: Subscription, payload: str) -> None:
        await asyncio.to_thread(self._send_blocking, subscription, payload)

    def _send_blocking(self, subscription: Subscription, payload: str) -> None:
        endpoint = subscription.endpoint
        info = {
            "endpoint": endpoint,
            "keys": {"p256dh": subscription.p256dh, "auth": subscription.auth},
        }
        try:
            webpush(
                subscription_info=info,
                data=payload,
                vapid_private_key=self._private_key,
                # pywebpush fills in `aud` per endpoint; pass a fresh dict each time.
                vapid_claims=dict(self._claims),
                ttl=self._ttl_s,
                content_encoding="aes128gcm",
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            if status in _GONE_STATUS_CODES:
                raise PushEndpointGone(f"Endpoint gone (HTTP {status})", endpoint=endpoint) from e
            raise PushTransientError(f"Push failed (HTTP {status}): {e}", endpoint=endpoint) from e
        except requests.RequestException as e:
            raise PushTransientError(f"Push request failed: {e}", endpoint=endpoint) from e
        except Exception as e:
            raise PushTransientError(f"Unexpected push failure: {e!r}", endpoint=endpoint) from e
