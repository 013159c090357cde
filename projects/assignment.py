# projects/assignment.py
"""
Assignment coordinator: locks a project for a team and binds a faculty guide.

First successful committer wins. The project lock is a version-checked
conditional update, and the lock, the guide binding and the team's
forming -> assigned transition commit in one database transaction, so a
losing or failing call leaves no partial state behind.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, F
from django.utils import timezone

from core.constants import (
    DEFAULT_SPECIALIZATION,
    ACTIVITY_PROJECT_LOCKED,
    ACTIVITY_GUIDE_ASSIGNED,
)
from core.exceptions import (
    NoCapacityError,
    ProjectAlreadyAssignedError,
    ValidationError,
)
from core.results import OperationResult, operation
from notifications import gateway
from notifications.models import Notification
from teams.models import Team
from teams.registry import load_team
from teams.state_machine import can_transition_team
from .consensus import load_project, require_consensus
from .models import Project

logger = logging.getLogger('capstone.assignment')

User = get_user_model()


def faculty_with_load(specialization=None):
    """
    Faculty annotated with ``assigned_teams``, counted from the teams they
    guide. Ordered by id, which is the tie-break order for equal loads.
    """
    qs = User.objects.filter(role=User.ROLE_FACULTY)
    if specialization:
        qs = qs.filter(specialization=specialization)
    return qs.annotate(assigned_teams=Count("guided_teams")).order_by("id")


def faculty_load(faculty):
    return Team.objects.filter(guide=faculty).count()


def available_faculty(specialization=None):
    return [f for f in faculty_with_load(specialization) if f.assigned_teams < f.max_teams]


def pick_guide(project):
    """
    Least-loaded faculty with spare capacity in the project's specialization,
    falling back to the whole faculty pool.

    Returns (guide, used_fallback).
    """
    specialization = project.specialization or DEFAULT_SPECIALIZATION

    candidates = available_faculty(specialization)
    used_fallback = False
    if not candidates:
        logger.warning(
            f"No available faculty with specialization '{specialization}' "
            f"for project {project.pk}; falling back to all faculty"
        )
        candidates = available_faculty()
        used_fallback = True

    if not candidates:
        raise NoCapacityError()

    return min(candidates, key=lambda f: f.assigned_teams), used_fallback


def lock_project(project, team):
    """
    Claim ``project`` for ``team``.

    Re-reads the project and commits only if it is still unassigned at the
    version read; a zero-row update means another team got there first.
    Locking a project the team already holds is a no-op.
    """
    project.refresh_from_db(fields=["is_assigned", "team", "version"])

    if project.is_assigned:
        if project.team_id == team.pk:
            return project
        raise ProjectAlreadyAssignedError()

    updated = Project.objects.filter(
        pk=project.pk,
        is_assigned=False,
        version=project.version,
    ).update(
        is_assigned=True,
        team=team,
        version=F("version") + 1,
        updated_at=timezone.now(),
    )

    project.refresh_from_db(fields=["is_assigned", "team", "version"])
    if not updated and project.team_id != team.pk:
        raise ProjectAlreadyAssignedError()

    logger.info(f"{ACTIVITY_PROJECT_LOCKED}: project={project.pk} team={team.pk} version={project.version}")
    return project


def _notify_assignment(team, project, guide):
    warnings = []
    payload = gateway.guide_assigned_payload(team, project, guide)
    recipients = list(User.objects.filter(team_memberships__team=team)) + [guide]

    for recipient in recipients:
        gateway.notify_user(
            recipient,
            Notification.TYPE_GUIDE_ASSIGNED,
            title=payload["subject"],
            team=team,
        )
        delivery = gateway.deliver(recipient.email, payload)
        if not delivery.ok:
            warnings.append(f"Could not email {recipient.email or recipient.username}: {delivery.message}")

    return warnings


def _assignment_data(team, project_id, guide_id, fallback=False):
    return {
        "team_id": team.pk,
        "project_id": project_id,
        "guide_id": guide_id,
        "status": team.status,
        "fallback": fallback,
    }


def _assign_faculty(team, project_id):
    if team.guide_id:
        return OperationResult.ok(
            "Faculty already assigned",
            _assignment_data(team, team.project_id, team.guide_id),
        )

    project = load_project(project_id)
    if project.is_assigned and project.team_id != team.pk:
        raise ProjectAlreadyAssignedError()

    with transaction.atomic():
        team = load_team(team.pk, for_update=True)
        if team.guide_id:
            return OperationResult.ok(
                "Faculty already assigned",
                _assignment_data(team, team.project_id, team.guide_id),
            )

        allowed, reason = can_transition_team(team, Team.STATUS_ASSIGNED)
        if not allowed:
            raise ValidationError(reason)

        # serialize concurrent assignments while faculty load is counted
        list(User.objects.select_for_update().filter(role=User.ROLE_FACULTY).values_list("pk", flat=True))

        guide, used_fallback = pick_guide(project)
        lock_project(project, team)

        now = timezone.now()
        Project.objects.filter(pk=project.pk).update(guide=guide, updated_at=now)
        updated = Team.objects.filter(
            pk=team.pk,
            guide__isnull=True,
            status=Team.STATUS_FORMING,
        ).update(
            guide=guide,
            project=project,
            status=Team.STATUS_ASSIGNED,
            updated_at=now,
        )
        if not updated:
            raise ValidationError("Team was assigned by a concurrent request")

    team.refresh_from_db()
    logger.info(
        f"{ACTIVITY_GUIDE_ASSIGNED}: team={team.pk} project={project.pk} guide={guide.pk}"
        f"{' (fallback)' if used_fallback else ''}"
    )

    warnings = _notify_assignment(team, project, guide)
    message = "Faculty assigned (fallback)" if used_fallback else "Faculty assigned successfully"
    return OperationResult.ok(
        message,
        _assignment_data(team, project.pk, guide.pk, fallback=used_fallback),
        warnings=warnings,
    )


@operation
def assign_faculty(team_id, project_id):
    return _assign_faculty(load_team(team_id), project_id)


@operation
def assign_faculty_if_consensus(team_id):
    team = load_team(team_id)
    if team.guide_id:
        return OperationResult.ok(
            "Faculty already assigned",
            _assignment_data(team, team.project_id, team.guide_id),
        )
    project_id = require_consensus(team)
    return _assign_faculty(team, project_id)
