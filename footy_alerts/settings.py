from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str = "redis://localhost:6379/0"

    squiggle_api_url: str = "https://api.squiggle.com.au/"
    squiggle_events_url: str = "https://api.squiggle.com.au/sse/events"
    # Squiggle asks clients to identify themselves.
    user_agent: str = "footy-alerts"

    # VAPID key (base64url, no padding) used to sign Web Push requests.
    notification_private_key: str | None = None
    notification_subject: str = "mailto:alerts@footyalerts.fyi"

    run_event_task: bool = True
    reconnect_delay_s: float = 30.0
    push_concurrency: int = 10


def settings_from_env() -> Settings:
    defaults = Settings()
    return Settings(
        redis_url=os.environ.get("REDIS_URL", defaults.redis_url),
        squiggle_api_url=os.environ.get("SQUIGGLE_API_URL", defaults.squiggle_api_url),
        squiggle_events_url=os.environ.get("SQUIGGLE_EVENTS_URL", defaults.squiggle_events_url),
        user_agent=os.environ.get("SQUIGGLE_USER_AGENT", defaults.user_agent),
        notification_private_key=os.environ.get("NOTIFICATION_PRIVATE_KEY"),
        notification_subject=os.environ.get("NOTIFICATION_SUBJECT", defaults.notification_subject),
        run_event_task=_env_flag("FOOTY_ALERTS_EVENT_TASK", defaults.run_event_task),
        reconnect_delay_s=float(os.environ.get("EVENT_RECONNECT_DELAY_S", defaults.reconnect_delay_s)),
        push_concurrency=int(os.environ.get("PUSH_CONCURRENCY", defaults.push_concurrency)),
    )


def load_dotenv_if_present(*, project_root: Path | None = None) -> None:
    """Load the repo `.env` without overriding variables already exported."""

    root = project_root or Path(__file__).resolve().parents[1]
    env_path = root / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)
