from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import fakeredis
import pytest
from fastapi.testclient import TestClient

from tests.helpers import FakePushSender, FakeSquiggle, round_five_games


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs, never in CI.

    The FastAPI startup hook would otherwise connect to the live Squiggle feed.
    """

    os.environ["FOOTY_ALERTS_EVENT_TASK"] = "0"

    if os.environ.get("CI"):
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture()
def r() -> fakeredis.FakeAsyncRedis:
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture()
def push_sender() -> FakePushSender:
    return FakePushSender()


@pytest.fixture()
def squiggle() -> FakeSquiggle:
    return FakeSquiggle(round_five_games())


@pytest.fixture()
def client_and_redis() -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient backed by fakeredis.

    Each request gets its own async client (bound to the TestClient's loop); the
    sync client returned alongside shares the same fake server for seeding/asserts.
    """

    from footy_alerts.api.deps import get_redis
    from footy_alerts.main import app

    server = fakeredis.FakeServer()

    async def _override():  # type: ignore[no-untyped-def]
        client = fakeredis.FakeAsyncRedis(server=server, decode_responses=True)
        try:
            yield client
        finally:
            await client.aclose()

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, fakeredis.FakeRedis(server=server, decode_responses=True)
    app.dependency_overrides.clear()
