"""
Canned Responses Bot
Personal and company canned responses for Discord, with an approval workflow.
"""

import discord
from discord import app_commands
from discord.ext import commands
from config import DISCORD_TOKEN, GUILD_ID, BRANCHES_DIR
from constants import LOG_FORMAT, LOG_DATE_FORMAT
import logging
import sys
from datetime import datetime
from pathlib import Path

# Create logs directory if it doesn't exist
logs_dir = Path("logs")
logs_dir.mkdir(exist_ok=True)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    datefmt=LOG_DATE_FORMAT,
    handlers=[
        logging.FileHandler(logs_dir / f'bot_{datetime.now().strftime("%Y%m%d")}.log', encoding="utf-8"),
        logging.StreamHandler(sys.stdout)
    ]
)

# Set discord.py logging level
logging.getLogger('discord').setLevel(logging.WARNING)
logging.getLogger('discord.http').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# Configure Discord intents
intents = discord.Intents.default()
intents.guilds = True        # Required for guild information and roles
intents.dm_messages = True   # Required to capture private conversations


class CannedResponsesBot(commands.Bot):
    """Discord bot hosting the canned responses branches."""

    def __init__(self):
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)
        self.tree.on_error = self.on_app_command_error

    async def setup_hook(self):
        try:
            logger.info("Loading branches...")
            await self.load_branches()

            logger.info("Setup complete!")
        except Exception as e:
            logger.critical(f"Failed to set up bot: {e}", exc_info=True)
            raise

    async def load_branches(self):
        """Load every enabled branch, generating its config on first run."""
        from core.branch_loader import get_branch_loader

        loader = get_branch_loader(BRANCHES_DIR)
        branch_names = loader.discover_branches()

        loaded_branches = []
        skipped_branches = []
        failed_branches = []

        logger.info(f"Discovered {len(branch_names)} branches")

        for branch_name in branch_names:
            try:
                config = loader.load_config(branch_name)

                if not config.get("enabled", True):
                    skipped_branches.append(branch_name)
                    logger.info(f"⏭️  Skipped {branch_name} (disabled in config)")
                    continue

                load_path = loader.get_load_path(branch_name)
                if not load_path:
                    failed_branches.append((branch_name, "Could not determine load path"))
                    continue

                await self.load_extension(load_path)
                loaded_branches.append(branch_name)
                logger.info(f"✅ Loaded branch: {branch_name}")

            except Exception as e:
                failed_branches.append((branch_name, str(e)))
                logger.error(f"❌ Failed to load branch {branch_name}: {e}", exc_info=True)

        logger.info(f"Loaded {len(loaded_branches)}/{len(branch_names)} branches: {', '.join(loaded_branches)}")

        if skipped_branches:
            logger.info(f"Skipped {len(skipped_branches)} disabled branches: {', '.join(skipped_branches)}")

        if failed_branches:
            logger.warning(f"Failed to load {len(failed_branches)} branches:")
            for branch_name, error in failed_branches:
                logger.warning(f"  - {branch_name}: {error}")

    async def on_ready(self):
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")

        # Sync slash commands to Discord
        try:
            logger.info("Syncing slash commands...")
            guild = discord.Object(id=GUILD_ID)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info(f"Synced {len(synced)} slash commands to guild {GUILD_ID}")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")

        logger.info("Bot is ready!")

    async def on_error(self, event_method: str, *args, **kwargs):
        logger.error(f"Error in {event_method}", exc_info=True)

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        if isinstance(error, app_commands.CheckFailure):
            content = "❌ You don't have permission to use this command."
        else:
            command_name = interaction.command.name if interaction.command else "unknown"
            logger.error(f"Slash command error in /{command_name}: {error}", exc_info=error)
            content = "❌ An error occurred while executing the command."

        try:
            if interaction.response.is_done():
                await interaction.followup.send(content, ephemeral=True)
            else:
                await interaction.response.send_message(content, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to send error response: {e}")


def main():
    try:
        logger.info("Starting canned responses bot...")
        bot = CannedResponsesBot()
        bot.run(DISCORD_TOKEN, log_handler=None)  # We handle logging ourselves
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()
