"""
Canned Responses Branch
Personal canned responses, company response suggestions and admin approval.

Structure:
- branch.py: CannedResponses cog, slash commands and the search index refresh task
- workflow.py: ApprovalWorkflow (suggestion state machine) and form dispatch
- storage.py: SQLite providers for responses, suggestions and conversations
- search.py: ResponseSearchIndex (periodically rebuilt read-side index)
- notifications.py: DiscordNotifier (admin cards and submitter DMs)
- cards.py: Embed builders
- views.py: ApprovalRequestView, ResponseListView, ConfirmDeleteView
- modals.py: ResponseFormModal, ApproveModal, RejectModal
- handlers.py: Button and modal submission logic
- helpers.py: Utility functions and config loading
"""

from .branch import CannedResponses
from .views import ApprovalRequestView

__all__ = ['CannedResponses', 'ApprovalRequestView', 'setup']

async def setup(bot):
    """Load the CannedResponses branch."""
    await bot.add_cog(CannedResponses(bot))
