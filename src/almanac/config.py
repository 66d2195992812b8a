"""Configuration management for Almanac."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .core.events import DEFAULT_NOTIFICATION_MINUTES
from .core.recurrence import DEFAULT_HORIZON_YEARS

logger = logging.getLogger(__name__)

ALMANAC_HOME = Path(os.environ.get("ALMANAC_HOME", Path.home() / "almanac"))
CONFIG_FILE = ALMANAC_HOME / "config" / "almanac.conf"
DATA_DIR = ALMANAC_HOME / "data"


@dataclass
class Config:
    """Almanac configuration."""

    data_dir: str = ""
    poll_seconds: int = 1
    horizon_years: int = DEFAULT_HORIZON_YEARS
    default_notification_minutes: int = DEFAULT_NOTIFICATION_MINUTES
    holiday_country: str = ""
    # Telegram delivery for notifications
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)

    @property
    def data_path(self) -> Path:
        """Directory holding the event store and notification log."""
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR


def _parse_int(key: str, value: str, default: int, minimum: int = 0) -> int:
    try:
        number = int(value)
    except ValueError:
        logger.warning(f"Invalid {key.upper()} value {value!r}, using {default}")
        return default
    if number < minimum:
        logger.warning(f"{key.upper()} must be at least {minimum}, using {default}")
        return default
    return number


def _strip_value(value: str) -> str:
    """Unquote a value and drop an inline comment."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from almanac.conf."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "data_dir":
                config.data_dir = value
            case "poll_seconds":
                config.poll_seconds = _parse_int(key, value, config.poll_seconds, minimum=1)
            case "horizon_years":
                config.horizon_years = _parse_int(key, value, config.horizon_years)
            case "default_notification_minutes":
                config.default_notification_minutes = _parse_int(
                    key, value, config.default_notification_minutes
                )
            case "holiday_country":
                config.holiday_country = value.upper()
            case "telegram_bot_token":
                config.telegram_bot_token = value
            case "telegram_allowed_users":
                users = []
                for u in value.split(","):
                    u = u.strip()
                    if not u:
                        continue
                    try:
                        users.append(int(u))
                    except ValueError:
                        logger.warning(f"Ignoring invalid Telegram user id: {u!r}")
                config.telegram_allowed_users = users
            case _:
                logger.debug(f"Ignoring unknown config key: {key}")

    return config
