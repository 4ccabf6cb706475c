from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from redis.asyncio import Redis

from footy_alerts import game_store
from footy_alerts.api.models import Game, Subscription
from footy_alerts.core.notifications import Notification
from footy_alerts.infra.web_push import PushEndpointGone, PushError, PushSender, PushTransientError

logger = logging.getLogger(__name__)

DEFAULT_PUSH_CONCURRENCY = 10

_MELBOURNE = ZoneInfo("Australia/Melbourne")


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    endpoint: str
    error: PushError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class Notifier:
    """Fans a notification out to every interested subscriber.

    Contract:
      - only the subscriber lookup can fail `notify`
      - per-subscriber failures are absorbed, whatever the sender raises; gone endpoints get deactivated
    """

    r: Redis
    sender: PushSender
    concurrency: int = DEFAULT_PUSH_CONCURRENCY

    async def notify(self, game: Game, notification: Notification) -> list[DeliveryResult]:
        subscriptions = await game_store.get_subscriptions_for_notification(
            r=self.r,
            home_team=game.home_team,
            away_team=game.away_team,
            kind=notification.kind,
        )
        if not subscriptions:
            return []

        text = notification.to_text()
        sem = asyncio.Semaphore(self.concurrency)

        async def _deliver(sub: Subscription) -> DeliveryResult:
            async with sem:
                return await self._send(sub, text)

        results = await asyncio.gather(*(_deliver(s) for s in subscriptions))

        for res in results:
            if res.ok:
                continue
            await self._handle_failure(res)

        logger.info(
            "Sent %s for game=%s to %d/%d subscriptions",
            notification.kind.name,
            game.id,
            sum(1 for res in results if res.ok),
            len(results),
        )
        return list(results)

    async def send_test_notification(self, endpoint: str) -> bool:
        """Push a timestamped test message. Returns False if the endpoint isn't subscribed."""

        subscription = await game_store.get_subscription_for_endpoint(r=self.r, endpoint=endpoint)
        if subscription is None:
            logger.info("Couldn't find subscription endpoint=%s", endpoint)
            return False

        now = datetime.now(tz=UTC).astimezone(_MELBOURNE).strftime("%Y-%m-%d %H:%M:%S %Z")
        res = await self._send(subscription, f"Test notification from FootyAlerts ({now})")
        if not res.ok:
            await self._handle_failure(res)
        return res.ok

    async def _send(self, subscription: Subscription, text: str) -> DeliveryResult:
        try:
            await self.sender.send(subscription=subscription, payload=text)
        except PushError as e:
            return DeliveryResult(endpoint=subscription.endpoint, error=e)
        except Exception as e:
            logger.exception("Unexpected error from push sender endpoint=%s", subscription.endpoint)
            error = PushTransientError(f"Unexpected push failure: {e!r}", endpoint=subscription.endpoint)
            return DeliveryResult(endpoint=subscription.endpoint, error=error)
        return DeliveryResult(endpoint=subscription.endpoint)

    async def _handle_failure(self, res: DeliveryResult) -> None:
        if isinstance(res.error, PushEndpointGone):
            logger.info("Endpoint expired, deactivating endpoint=%s error=%s", res.endpoint, res.error)
            try:
                await game_store.delete_subscription(r=self.r, endpoint=res.endpoint)
            except Exception:
                logger.exception("Couldn't deactivate expired subscription endpoint=%s", res.endpoint)
        elif isinstance(res.error, PushTransientError):
            logger.warning("Transient web push error endpoint=%s error=%s", res.endpoint, res.error)
