"""
Canned Responses Helper Functions
Shared utility functions for the canned responses branch.
"""

import discord
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, List

from constants import BRANCH_CONFIG_FILE, BRANCH_DATABASE_FILE, truncate_for_embed_field

logger = logging.getLogger(__name__)

COG_NAME = "CannedResponses"


def get_db_path():
    """Get the database path for this branch."""
    return str(Path(__file__).parent / BRANCH_DATABASE_FILE)


def get_canned_responses_config() -> Dict[str, Any]:
    """Load canned responses config from config.yml."""
    config_path = Path(__file__).parent / BRANCH_CONFIG_FILE
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        logger.debug("Loaded canned responses config")
        return config
    except FileNotFoundError:
        return {}
    except Exception as e:
        logger.error(f"Failed to load canned responses config: {e}")
        return {}


def get_embed_colors(config: Dict[str, Any] = None) -> Dict[str, int]:
    """Get embed colors from config."""
    if config is None:
        config = get_canned_responses_config()
    embed_colors = config.get("settings", {}).get("ui", {}).get("embed_colors", {})
    return {
        "pending": embed_colors.get("pending", 0x5865F2),
        "approved": embed_colors.get("approved", 0x57F287),
        "rejected": embed_colors.get("rejected", 0xED4245),
        "info": embed_colors.get("info", 0x2B2D31),
        "warning": embed_colors.get("warning", 0xFEE75C),
    }


def get_approver_role_ids(config: Dict[str, Any] = None) -> List[int]:
    """Get approver role IDs from config."""
    if config is None:
        config = get_canned_responses_config()
    return config.get("settings", {}).get("approver_role_ids", [])


def is_approver(interaction: discord.Interaction, approver_role_ids: List[int] = None) -> bool:
    """
    Check if the user may approve or reject suggestions.

    Args:
        interaction: Discord interaction
        approver_role_ids: Optional list of approver role IDs (loaded from config if None)

    Returns:
        True for administrators and members holding an approver role
    """
    if approver_role_ids is None:
        approver_role_ids = get_approver_role_ids()

    permissions = getattr(interaction.user, "guild_permissions", None)
    if permissions is not None and permissions.administrator:
        return True

    roles = getattr(interaction.user, "roles", [])
    return any(role.id in approver_role_ids for role in roles)


def get_canned_responses_cog(client):
    """Get the loaded CannedResponses cog, or None if the branch is unloaded."""
    return client.get_cog(COG_NAME)


def truncate(text: str) -> str:
    """Truncate text for embed fields."""
    return truncate_for_embed_field(text or "", '…')
