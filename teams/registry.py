# teams/registry.py
"""
Team registry: team records, membership and capacity.

Capacity is always recomputed from TeamMember and pending Invitation rows;
nothing here keeps a cached counter.
"""
import logging
import re
import time

from django.db import transaction
from django.db.models import Q

from core.constants import (
    MAX_TEAM_SIZE,
    ACTIVITY_TEAM_CREATED,
    ACTIVITY_MEMBER_JOINED,
    ACTIVITY_MEMBER_REMOVED,
)
from core.exceptions import CapacityError, NotFoundError, ValidationError
from core.results import OperationResult, operation
from .models import Team, TeamMember, Invitation
from .signals import membership_changed

logger = logging.getLogger('capstone.teams')

DEPARTMENT_CODE_RE = re.compile(r"[A-Z]{3,4}")


def generate_team_number(leader, now_ms=None):
    """
    Team numbers carry the leader's department code when the roll number has
    one (``CSE-4821``), otherwise a plain timestamp suffix (``T104821``).
    """
    stamp = str(now_ms if now_ms is not None else int(time.time() * 1000))
    roll_no = (getattr(leader, "roll_no", None) or "").upper()
    match = DEPARTMENT_CODE_RE.search(roll_no)
    if match:
        return f"{match.group(0)}-{stamp[-4:]}"
    return f"T{stamp[-6:]}"


def load_team(team_id, for_update=False):
    qs = Team.objects.select_for_update() if for_update else Team.objects
    try:
        return qs.get(pk=getattr(team_id, "pk", team_id))
    except Team.DoesNotExist:
        raise NotFoundError("Team not found")


def get_capacity(team):
    """
    {current, max, available, isFull}

    ``available`` counts pending invitations as taken seats.
    """
    current = team.members.count()
    pending = team.invitations.filter(status=Invitation.STATUS_PENDING).count()
    potential = current + pending
    return {
        "current": current,
        "max": MAX_TEAM_SIZE,
        "available": MAX_TEAM_SIZE - potential,
        "isFull": potential >= MAX_TEAM_SIZE,
    }


def announce_membership_change(team, user):
    """
    Send ``membership_changed`` and collect the guide assignments it triggered.

    Returns (message_suffix, warnings) to fold into the caller's result.
    """
    suffix = ""
    warnings = []
    for _, response in membership_changed.send(sender=Team, team=team, user=user):
        assignment = getattr(response, "assignment", None)
        if assignment is None:
            continue
        if assignment.success:
            suffix += f". {assignment.message}"
        else:
            warnings.append(f"Guide assignment did not complete: {assignment.message}")
    return suffix, warnings


def ensure_seat_for_new_invite(team):
    capacity = get_capacity(team)
    if capacity["isFull"]:
        raise CapacityError(
            f"Team is at maximum capacity ({MAX_TEAM_SIZE} members including pending invites)."
        )


def join_team(team, user, role=TeamMember.ROLE_MEMBER):
    """
    Set-union ``user`` into the team and point the user's team reference at it.

    Returns True when a new membership row was created.
    """
    _, created = TeamMember.objects.get_or_create(team=team, user=user, defaults={"role": role})
    if user.team_id != team.pk:
        user.team = team
        user.save(update_fields=["team"])
    if created:
        logger.info(f"{ACTIVITY_MEMBER_JOINED}: user={user.pk} team={team.pk}")
    return created


@operation
def create_team(leader, name):
    name = (name or "").strip()
    if not name:
        raise ValidationError("Team name is required")

    if leader.team_id or TeamMember.objects.filter(user=leader).exists():
        raise ValidationError("You already belong to a team")

    with transaction.atomic():
        team = Team.objects.create(
            name=name,
            leader=leader,
            number=generate_team_number(leader),
            status=Team.STATUS_FORMING,
        )
        join_team(team, leader, role=TeamMember.ROLE_LEADER)

    logger.info(f"{ACTIVITY_TEAM_CREATED}: team={team.pk} leader={leader.pk} number={team.number}")
    return OperationResult.ok(f"Team '{team.name}' created", team, status_code=201)


@operation
def add_member(team_id, user):
    with transaction.atomic():
        team = load_team(team_id, for_update=True)

        if team.members.filter(user=user).exists():
            return OperationResult.ok("User is already a team member", team)

        if user.team_id and user.team_id != team.pk:
            raise ValidationError("User already belongs to another team")

        if team.status != Team.STATUS_FORMING:
            raise ValidationError("Team is no longer forming")

        capacity = get_capacity(team)
        if capacity["isFull"]:
            raise CapacityError(f"Team is full. Maximum team size is {MAX_TEAM_SIZE} members.")

        join_team(team, user)

    suffix, warnings = announce_membership_change(team, user)
    team.refresh_from_db()
    return OperationResult.ok(f"Member added to team{suffix}", team, warnings=warnings)


@operation
def remove_member(team_id, user):
    with transaction.atomic():
        team = load_team(team_id, for_update=True)

        if user.pk == team.leader_id:
            raise ValidationError("Team leaders cannot leave. Transfer leadership or delete the team.")

        removed, _ = TeamMember.objects.filter(team=team, user=user).delete()

        if user.team_id == team.pk:
            user.team = None
            user.save(update_fields=["team"])

    if removed:
        logger.info(f"{ACTIVITY_MEMBER_REMOVED}: user={user.pk} team={team.pk}")
        return OperationResult.ok("Member removed from team", team)
    return OperationResult.ok("User was not a team member", team)


@operation
def get_team(team_id):
    return OperationResult.ok("Team", load_team(team_id))


@operation
def get_team_capacity(team_id):
    team = load_team(team_id)
    return OperationResult.ok("Team capacity", get_capacity(team))


def list_user_teams(user):
    """Teams where the user is a member or the leader."""
    return (
        Team.objects
        .filter(Q(members__user=user) | Q(leader=user))
        .distinct()
        .order_by("-created_at")
    )
