"""
Invitation notices.

Called after a pending invitation has been committed. Delivery is
best-effort: a failed notice is logged by the caller and the invitation
stays valid.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from .models import TeamInvitation

if TYPE_CHECKING:
    from ..teams.models import Team
    from ..utils.supabase import TeamVaultSupabaseClient


class InviteNotifier(ABC):
    """Delivers an "you have been invited" notice."""

    @abstractmethod
    async def notify_invited(self, invitation: TeamInvitation, team: "Team") -> None:
        """Send the notice for ``invitation``. May raise; callers log and move on."""


class NullInviteNotifier(InviteNotifier):
    """Drops every notice. Used when invitation emails are disabled."""

    async def notify_invited(self, invitation: TeamInvitation, team: "Team") -> None:
        return None


class SupabaseInviteNotifier(InviteNotifier):
    """
    Sends invitation emails through Supabase Auth.

    Wraps: supabase_auth._async.gotrue_admin_api.AsyncGoTrueAdminAPI.invite_user_by_email
    """

    def __init__(
        self,
        client: "TeamVaultSupabaseClient",
        redirect_to: Optional[str] = None,
    ) -> None:
        """
        Initialize SupabaseInviteNotifier.

        Args:
            client: Supabase client wrapper
            redirect_to: URL the email link sends the invitee to
        """
        self.client = client
        self.redirect_to = redirect_to

    async def notify_invited(self, invitation: TeamInvitation, team: "Team") -> None:
        options = {
            "data": {
                "team_id": str(team.id),
                "team_name": team.name,
                "invitation_id": str(invitation.id),
            }
        }
        if self.redirect_to:
            options["redirect_to"] = self.redirect_to

        await self.client.auth.admin.invite_user_by_email(invitation.email, options)
