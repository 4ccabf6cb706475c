from __future__ import annotations

import logging

import fakeredis
import pytest

from footy_alerts import game_store
from footy_alerts.api.models import Game
from footy_alerts.core.notifications import Notification, NotificationKind
from footy_alerts.core.policy import maybe_notification
from footy_alerts.infra.web_push import PushEndpointGone, PushTransientError
from footy_alerts.notifier import Notifier
from tests.helpers import FakePushSender, make_game, make_subscription


def _end_of_game() -> tuple[Game, Notification]:
    game = make_game(home_score=80, away_score=79, complete=100, timestr="Full Time")
    notification = maybe_notification(game)
    assert isinstance(notification, Notification)
    return game, notification


@pytest.mark.asyncio
async def test_gone_endpoint_is_deactivated_and_others_still_delivered(
    r: fakeredis.FakeAsyncRedis, push_sender: FakePushSender
) -> None:
    for i in range(3):
        await game_store.add_subscription(r=r, subscription=make_subscription(f"https://push/{i}", final_scores=True))
    push_sender.failures["https://push/1"] = PushEndpointGone

    results = await Notifier(r=r, sender=push_sender).notify(*_end_of_game())

    assert sorted(res.endpoint for res in results if res.ok) == ["https://push/0", "https://push/2"]
    assert push_sender.endpoints() == ["https://push/0", "https://push/2"]

    gone = await game_store.get_subscription_for_endpoint(r=r, endpoint="https://push/1")
    assert gone is not None and gone.active is False


@pytest.mark.asyncio
async def test_transient_failure_keeps_subscription_active(
    r: fakeredis.FakeAsyncRedis, push_sender: FakePushSender, caplog: pytest.LogCaptureFixture
) -> None:
    await game_store.add_subscription(r=r, subscription=make_subscription("https://push/flaky", final_scores=True))
    push_sender.failures["https://push/flaky"] = PushTransientError

    with caplog.at_level(logging.WARNING, logger="footy_alerts.notifier"):
        results = await Notifier(r=r, sender=push_sender).notify(*_end_of_game())

    assert [res.ok for res in results] == [False]
    assert "Transient web push error" in caplog.text

    sub = await game_store.get_subscription_for_endpoint(r=r, endpoint="https://push/flaky")
    assert sub is not None and sub.active is True


@pytest.mark.asyncio
async def test_fan_out_is_bounded(r: fakeredis.FakeAsyncRedis) -> None:
    sender = FakePushSender(delay_s=0.01)
    for i in range(25):
        await game_store.add_subscription(r=r, subscription=make_subscription(f"https://push/{i}", final_scores=True))

    results = await Notifier(r=r, sender=sender).notify(*_end_of_game())

    assert len(results) == 25
    assert len(sender.sent) == 25
    assert sender.max_in_flight == 10


@pytest.mark.asyncio
async def test_deactivation_failure_is_logged_not_raised(
    r: fakeredis.FakeAsyncRedis,
    push_sender: FakePushSender,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    await game_store.add_subscription(r=r, subscription=make_subscription("https://push/gone", final_scores=True))
    push_sender.failures["https://push/gone"] = PushEndpointGone

    async def _boom(*, r, endpoint):  # type: ignore[no-untyped-def]
        raise RuntimeError("store down")

    monkeypatch.setattr(game_store, "delete_subscription", _boom)

    with caplog.at_level(logging.ERROR, logger="footy_alerts.notifier"):
        await Notifier(r=r, sender=push_sender).notify(*_end_of_game())

    assert "Couldn't deactivate expired subscription" in caplog.text


@pytest.mark.asyncio
async def test_no_subscribers_sends_nothing(r: fakeredis.FakeAsyncRedis, push_sender: FakePushSender) -> None:
    await game_store.add_subscription(r=r, subscription=make_subscription("https://push/close", close_games=True))

    results = await Notifier(r=r, sender=push_sender).notify(*_end_of_game())

    assert results == []
    assert push_sender.sent == []


@pytest.mark.asyncio
async def test_send_test_notification(r: fakeredis.FakeAsyncRedis, push_sender: FakePushSender) -> None:
    await game_store.add_subscription(r=r, subscription=make_subscription("https://push/me"))
    notifier = Notifier(r=r, sender=push_sender)

    assert await notifier.send_test_notification("https://push/me") is True
    assert await notifier.send_test_notification("https://push/unknown") is False

    assert len(push_sender.sent) == 1
    endpoint, text = push_sender.sent[0]
    assert endpoint == "https://push/me"
    assert text.startswith("Test notification from FootyAlerts (")


def test_notification_kind_values_are_stable() -> None:
    # Stored in the ledger; renumbering would resend old notifications.
    assert [k.value for k in NotificationKind] == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_unexpected_sender_error_is_absorbed(
    r: fakeredis.FakeAsyncRedis, push_sender: FakePushSender, caplog: pytest.LogCaptureFixture
) -> None:
    await game_store.add_subscription(r=r, subscription=make_subscription("https://push/bad", final_scores=True))
    await game_store.add_subscription(r=r, subscription=make_subscription("https://push/good", final_scores=True))
    push_sender.failures["https://push/bad"] = ValueError

    with caplog.at_level(logging.WARNING, logger="footy_alerts.notifier"):
        results = await Notifier(r=r, sender=push_sender).notify(*_end_of_game())

    by_endpoint = {res.endpoint: res for res in results}
    assert by_endpoint["https://push/good"].ok
    assert isinstance(by_endpoint["https://push/bad"].error, PushTransientError)
    assert push_sender.endpoints() == ["https://push/good"]
    assert "Unexpected error from push sender" in caplog.text

    sub = await game_store.get_subscription_for_endpoint(r=r, endpoint="https://push/bad")
    assert sub is not None and sub.active is True
