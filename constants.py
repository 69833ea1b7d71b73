"""
Global constants for the canned responses bot.

Contains Discord API limits, response workflow values, and other constant
values used throughout the bot and branches.
"""

# ============================================================================
# Discord API Limits
# ============================================================================

# Embed Limits (from Discord API documentation)
EMBED_TITLE_MAX = 256
EMBED_DESCRIPTION_MAX = 4096
EMBED_FIELD_NAME_MAX = 256
EMBED_FIELD_VALUE_MAX = 1024
EMBED_FOOTER_MAX = 2048
EMBED_TOTAL_MAX = 6000  # Total characters across title, description, fields and footer
EMBED_MAX_FIELDS = 25

# Autocomplete / choice limits
AUTOCOMPLETE_MAX_CHOICES = 25
COMMAND_CHOICE_NAME_MAX = 100

# ============================================================================
# Canned Response Constants
# ============================================================================

# Approval statuses
PENDING_STATUS = "Pending"
APPROVED_STATUS = "Approved"
REJECTED_STATUS = "Rejected"
TERMINAL_STATUSES = (APPROVED_STATUS, REJECTED_STATUS)

# Form command contexts
ADD_USER_RESPONSE_COMMAND = "AddUserResponse"
ADD_NEW_SUGGESTION_COMMAND = "AddNewSuggestion"
EDIT_USER_RESPONSE_COMMAND = "EditUserResponse"

# Search
DEFAULT_SEARCH_RESULT_COUNT = 200
MAXIMUM_SEARCH_RESULT_COUNT = 1000
MAXIMUM_LISTED_RESPONSES = 500
DEFAULT_INDEXING_INTERVAL_MINUTES = 10

# Approval form field limits
APPROVE_LABEL_MAX = 200
APPROVE_QUESTION_MAX = 500
APPROVE_RESPONSE_MAX = 500
REJECT_REMARK_MAX = 200

# ============================================================================
# Bot Framework Constants
# ============================================================================

# Branch Configuration
BRANCH_CONFIG_FILE = "config.yml"
BRANCH_DATABASE_FILE = "data.db"

# Logging
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Default Timeouts (in seconds)
DEFAULT_VIEW_TIMEOUT = 180
DEFAULT_MODAL_TIMEOUT = 300

# ============================================================================
# Helper Functions
# ============================================================================

def truncate_for_embed_field(text: str, suffix: str = "...") -> str:
    """
    Truncate text to fit in an embed field value.

    Args:
        text: Text to truncate
        suffix: Suffix to add if truncated (default: "...")

    Returns:
        Truncated text that fits within EMBED_FIELD_VALUE_MAX
    """
    if not text:
        return ""

    if len(text) <= EMBED_FIELD_VALUE_MAX:
        return text

    return text[:EMBED_FIELD_VALUE_MAX - len(suffix)] + suffix
