# teams/state_machine.py
"""
State machines for invitations and teams.

Invitation:  pending -> accepted | rejected | cancelled | expired
Team:        forming -> assigned

Every state outside the transition tables is terminal. Transitions are
applied with a conditional update on the current status, so two racing
callers cannot both move the same row out of the same state.
"""
from typing import Tuple
import logging

from django.utils import timezone

from .models import Invitation, Team

logger = logging.getLogger('capstone.invitations')


INVITATION_TRANSITIONS = {
    Invitation.STATUS_PENDING: [
        Invitation.STATUS_ACCEPTED,
        Invitation.STATUS_REJECTED,
        Invitation.STATUS_CANCELLED,
        Invitation.STATUS_EXPIRED,
    ],
}

TEAM_TRANSITIONS = {
    Team.STATUS_FORMING: [Team.STATUS_ASSIGNED],
}


def can_transition(invitation: Invitation, new_status: str) -> Tuple[bool, str]:
    """
    Check if an invitation can move to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = invitation.status

    if new_status not in dict(Invitation.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    allowed = INVITATION_TRANSITIONS.get(current_status, [])

    if new_status not in allowed:
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def transition(invitation: Invitation, new_status: str, actor=None) -> Tuple[bool, str]:
    """
    Attempt to move an invitation to a new status.

    The row is only updated while it is still in the status the caller read,
    so a concurrent response makes this call report failure instead of
    overwriting the earlier outcome.

    Returns (success: bool, message: str)
    """
    can, reason = can_transition(invitation, new_status)

    if not can:
        logger.warning(
            f"Invalid invitation transition attempted: invitation={invitation.id}, "
            f"from={invitation.status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}. "
            f"Reason: {reason}"
        )
        return False, reason

    old_status = invitation.status
    responded_at = timezone.now()
    updated = Invitation.objects.filter(pk=invitation.pk, status=old_status).update(
        status=new_status,
        responded_at=responded_at,
    )

    if not updated:
        invitation.refresh_from_db(fields=['status', 'responded_at'])
        logger.info(
            f"Invitation {invitation.id} already moved to '{invitation.status}' "
            f"before '{new_status}' could be applied"
        )
        return False, f"Invitation is already {invitation.status}"

    invitation.status = new_status
    invitation.responded_at = responded_at

    logger.info(
        f"Invitation state transition: invitation={invitation.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
    )

    return True, f"Transitioned from '{old_status}' to '{new_status}'"


def is_terminal_status(status: str) -> bool:
    """Terminal invitation states accept no further transitions."""
    return len(INVITATION_TRANSITIONS.get(status, [])) == 0


def can_transition_team(team: Team, new_status: str) -> Tuple[bool, str]:
    if new_status == team.status:
        return True, "Same status"

    if new_status not in TEAM_TRANSITIONS.get(team.status, []):
        return False, f"Cannot transition team from '{team.status}' to '{new_status}'"

    return True, ""
