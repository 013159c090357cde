# teams/invitations.py
"""
Invitation manager.

The persisted Invitation row is authoritative; email delivery is a side
effect whose failure only adds a warning to the result.
"""
from datetime import timedelta
import logging
import re

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from core.constants import (
    MAX_TEAM_SIZE,
    ACTIVITY_INVITATION_SENT,
    ACTIVITY_INVITATION_ACCEPTED,
    ACTIVITY_INVITATION_REJECTED,
    ACTIVITY_INVITATION_CANCELLED,
    ACTIVITY_INVITATION_EXPIRED,
)
from core.exceptions import (
    AlreadyRespondedError,
    CapacityError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from core.results import OperationResult, operation
from notifications import gateway
from notifications.models import Notification
from .models import Invitation, Team
from .policies import TeamPolicy
from .registry import load_team, ensure_seat_for_new_invite, join_team, announce_membership_change
from . import state_machine

logger = logging.getLogger('capstone.invitations')

User = get_user_model()

ACTION_ACCEPT = "accept"
ACTION_REJECT = "reject"
LINK_ACTIONS = (ACTION_ACCEPT, ACTION_REJECT)

NAME_SPLIT_RE = re.compile(r"[._-]")
PLACEHOLDER_UNSAFE_RE = re.compile(r"[^a-z0-9]")


def normalize_email(email):
    return (email or "").strip().lower()


def display_name_from_email(email):
    """``john.doe_smith@uni.edu`` -> ``John Doe Smith``."""
    local_part = normalize_email(email).split("@")[0]
    parts = [part for part in NAME_SPLIT_RE.split(local_part) if part]
    return " ".join(part[:1].upper() + part[1:] for part in parts) or "Student"


def placeholder_id_for_email(email):
    """Deterministic stand-in identity for an invitee without an account."""
    return "email_" + PLACEHOLDER_UNSAFE_RE.sub("_", normalize_email(email))


def build_invitation_link(team_id, invitation_id, action=None):
    link = f"{settings.FRONTEND_BASE_URL}/invitation/{team_id}/{invitation_id}"
    if action in LINK_ACTIONS:
        link = f"{link}?action={action}"
    return link


def load_invitation(invitation_id):
    try:
        return Invitation.objects.select_related("team", "inviter", "invited_user").get(
            pk=getattr(invitation_id, "pk", invitation_id)
        )
    except Invitation.DoesNotExist:
        raise NotFoundError("Invitation not found")


def _already_responded(invitation):
    message = f"{AlreadyRespondedError.default_message} (status: {invitation.status})"
    return OperationResult.ok(message, invitation)


def _ensure_invitee(invitation, user):
    if invitation.invited_user_id:
        if invitation.invited_user_id != user.pk:
            raise ValidationError("This invitation was sent to another user")
    elif normalize_email(user.email) != invitation.invited_email:
        raise ValidationError("This invitation was sent to a different email address")


def _notify_inviter(invitation, accepted):
    """Tell the inviter about a response. Returns a warning string or None."""
    inviter = invitation.inviter
    if inviter is None:
        return None

    gateway.notify_user(
        inviter,
        Notification.TYPE_INVITATION_ACCEPTED if accepted else Notification.TYPE_INVITATION_REJECTED,
        title=gateway.response_payload(invitation, accepted)["subject"],
        team=invitation.team,
    )
    delivery = gateway.deliver(inviter.email, gateway.response_payload(invitation, accepted))
    if not delivery.ok:
        return f"Team leader could not be notified by email: {delivery.message}"
    return None


@operation
def send_invitation(team_id, inviter, email):
    normalized = normalize_email(email)
    try:
        validate_email(normalized)
    except DjangoValidationError:
        raise ValidationError("Enter a valid email address")

    with transaction.atomic():
        team = load_team(team_id, for_update=True)

        if inviter.pk != team.leader_id and not TeamPolicy.is_system_admin(inviter):
            raise ValidationError("Only the team leader can send invitations")

        if team.status != Team.STATUS_FORMING:
            raise ValidationError("Team is no longer accepting members")

        if team.invitations.filter(status=Invitation.STATUS_PENDING, invited_email=normalized).exists():
            raise DuplicateError()

        invited_user = User.objects.filter(email__iexact=normalized, role=User.ROLE_STUDENT).first()
        if invited_user is not None and team.members.filter(user=invited_user).exists():
            raise ValidationError("User is already a team member")

        ensure_seat_for_new_invite(team)

        invitation = Invitation.objects.create(
            team=team,
            inviter=inviter,
            invited_user=invited_user,
            invited_email=normalized,
            invited_name=invited_user.display_name if invited_user else display_name_from_email(normalized),
            placeholder_id="" if invited_user else placeholder_id_for_email(normalized),
            status=Invitation.STATUS_PENDING,
        )

    logger.info(
        f"{ACTIVITY_INVITATION_SENT}: invitation={invitation.pk} team={team.pk} "
        f"invitee={invitation.invited_user_id_or_placeholder}"
    )

    link = build_invitation_link(team.pk, invitation.pk)
    if invited_user is not None:
        gateway.notify_user(
            invited_user,
            Notification.TYPE_TEAM_INVITATION,
            title=f"Invitation to join {team.name}",
            body=link,
            team=team,
        )

    payload = gateway.invitation_payload(
        invitation,
        link,
        accept_link=build_invitation_link(team.pk, invitation.pk, action=ACTION_ACCEPT),
        reject_link=build_invitation_link(team.pk, invitation.pk, action=ACTION_REJECT),
    )
    delivery = gateway.deliver(normalized, payload)
    if not delivery.ok:
        logger.warning(f"Invitation {invitation.pk} created but email failed: {delivery.message}")
        return OperationResult.ok(
            f"Invitation created for {invitation.invited_name}. "
            f"Email failed - please share the link manually: {link}",
            invitation,
            warnings=[f"Email delivery failed: {delivery.message}"],
            status_code=201,
        )

    return OperationResult.ok(f"Invitation sent to {invitation.invited_name}", invitation, status_code=201)


@operation
def accept_invitation(invitation_id, user):
    invitation = load_invitation(invitation_id)

    if state_machine.is_terminal_status(invitation.status):
        return _already_responded(invitation)

    _ensure_invitee(invitation, user)

    with transaction.atomic():
        # capacity may have changed since the invite was sent
        team = load_team(invitation.team_id, for_update=True)

        if team.status != Team.STATUS_FORMING:
            raise ValidationError("Team is no longer accepting members")

        if user.team_id and user.team_id != team.pk:
            raise ValidationError("You already belong to another team")

        if not team.members.filter(user=user).exists() and team.members.count() >= MAX_TEAM_SIZE:
            raise CapacityError(f"Team is full. Maximum team size is {MAX_TEAM_SIZE} members.")

        moved, _ = state_machine.transition(invitation, Invitation.STATUS_ACCEPTED, actor=user)
        if not moved:
            return _already_responded(invitation)

        if invitation.invited_user_id is None:
            Invitation.objects.filter(pk=invitation.pk).update(invited_user=user)
            invitation.invited_user = user

        join_team(team, user)

    logger.info(f"{ACTIVITY_INVITATION_ACCEPTED}: invitation={invitation.pk} user={user.pk} team={team.pk}")

    warnings = []
    warning = _notify_inviter(invitation, accepted=True)
    if warning:
        warnings.append(warning)

    # the new member may complete a unanimous team
    suffix, assignment_warnings = announce_membership_change(team, user)
    warnings.extend(assignment_warnings)

    return OperationResult.ok(f"Invitation accepted successfully{suffix}", invitation, warnings=warnings)


@operation
def reject_invitation(invitation_id, user):
    invitation = load_invitation(invitation_id)

    if state_machine.is_terminal_status(invitation.status):
        return _already_responded(invitation)

    _ensure_invitee(invitation, user)

    moved, _ = state_machine.transition(invitation, Invitation.STATUS_REJECTED, actor=user)
    if not moved:
        return _already_responded(invitation)

    logger.info(f"{ACTIVITY_INVITATION_REJECTED}: invitation={invitation.pk} user={user.pk}")

    warning = _notify_inviter(invitation, accepted=False)
    return OperationResult.ok(
        "Invitation rejected",
        invitation,
        warnings=[warning] if warning else None,
    )


@operation
def cancel_invitation(invitation_id, actor):
    invitation = load_invitation(invitation_id)

    is_manager = actor.pk in (invitation.team.leader_id, invitation.inviter_id)
    if not is_manager and not TeamPolicy.is_system_admin(actor):
        raise ValidationError("Only the team leader can cancel invitations")

    if state_machine.is_terminal_status(invitation.status):
        return _already_responded(invitation)

    moved, _ = state_machine.transition(invitation, Invitation.STATUS_CANCELLED, actor=actor)
    if not moved:
        return _already_responded(invitation)

    logger.info(f"{ACTIVITY_INVITATION_CANCELLED}: invitation={invitation.pk} actor={actor.pk}")
    return OperationResult.ok("Invitation cancelled successfully", invitation)


@operation
def list_invitations(team_id=None, user=None, status=None):
    """
    Invitations for a team, or addressed to a user (by account or by email),
    newest first.
    """
    if team_id is None and user is None:
        raise ValidationError("Either a team or a user is required")

    qs = Invitation.objects.select_related("team", "inviter", "invited_user")
    if team_id is not None:
        qs = qs.filter(team=load_team(team_id))
    if user is not None:
        qs = qs.filter(Q(invited_user=user) | Q(invited_email=normalize_email(user.email)))
    if status:
        qs = qs.filter(status=status)

    return OperationResult.ok("Invitations", list(qs.order_by("-created_at", "-id")))


def expire_stale_invitations(now=None):
    """
    Move pending invitations older than INVITATION_EXPIRY_DAYS to expired.

    Returns the number of invitations expired.
    """
    now = now or timezone.now()
    cutoff = now - timedelta(days=settings.INVITATION_EXPIRY_DAYS)
    expired = Invitation.objects.filter(
        status=Invitation.STATUS_PENDING,
        created_at__lt=cutoff,
    ).update(status=Invitation.STATUS_EXPIRED, responded_at=now)

    if expired:
        logger.info(f"{ACTIVITY_INVITATION_EXPIRED}: {expired} invitation(s) older than {cutoff:%Y-%m-%d}")
    return expired
