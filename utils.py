"""Utility functions for the bot."""

import logging
import yaml
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def load_branch_config(config_path: Path, default_config: Dict[str, Any], branch_name: str) -> Dict[str, Any]:
    """
    Load branch configuration from YAML file with fallback to defaults.

    Args:
        config_path: Path to config.yml file
        default_config: Default configuration dictionary
        branch_name: Name of the branch (for logging)

    Returns:
        Loaded configuration or default config if file doesn't exist
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
            logger.info(f"Loaded config for {branch_name}")
            return config
        except Exception as e:
            logger.error(f"Failed to load config for {branch_name}: {e}")

    return default_config


def sanitize_text(text: Optional[str], max_length: int = 2000) -> str:
    """
    Sanitize user input text.

    Args:
        text: The text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text[:max_length]
    text = text.replace('\x00', '')

    return text.strip()


def truncate_text(text: str, limit: int = 1024, suffix: str = '...') -> str:
    """
    Truncate text to a specified limit with a suffix.

    Args:
        text: The text to truncate
        limit: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if not text:
        return ""

    if len(text) <= limit:
        return text

    return text[:limit - len(suffix)] + suffix


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for storage (UTC, ISO-8601)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO-8601 timestamp back into an aware datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def discord_timestamp(value: Optional[datetime], style: str = "f") -> str:
    """
    Format a datetime as a Discord timestamp markup string.

    Args:
        value: The datetime to format
        style: Discord timestamp style flag (f, F, d, D, t, T, R)

    Returns:
        String like "<t:1700000000:f>", or "Unknown" when value is None
    """
    if value is None:
        return "Unknown"
    return f"<t:{int(value.timestamp())}:{style}>"
