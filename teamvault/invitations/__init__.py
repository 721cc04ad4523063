"""
TeamVault invitations module.

Pending invitation models and invitation notices. The invitation lifecycle
manager lives in ``teamvault.invitations.invites``.
"""

from .models import CreateInvitationRequest, TeamInvitation
from .notify import InviteNotifier, NullInviteNotifier, SupabaseInviteNotifier

__all__ = [
    "TeamInvitation",
    "CreateInvitationRequest",
    "InviteNotifier",
    "NullInviteNotifier",
    "SupabaseInviteNotifier",
]
