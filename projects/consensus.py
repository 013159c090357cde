# projects/consensus.py
"""
Consensus resolver.

A team reaches consensus only when it is full and every member has selected
the same project. There is no quorum and no tie-break: disagreement simply
blocks progress until members re-select.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone

from core.constants import MAX_TEAM_SIZE, ACTIVITY_PROJECT_SELECTED
from core.exceptions import NotFoundError, ProjectAlreadyAssignedError, ValidationError
from core.results import OperationResult, operation
from teams.registry import load_team
from .models import Project
from .signals import ConsensusOutcome, selection_changed

logger = logging.getLogger('capstone.consensus')

User = get_user_model()


def load_project(project_id):
    try:
        return Project.objects.get(pk=getattr(project_id, "pk", project_id))
    except Project.DoesNotExist:
        raise NotFoundError("Project not found")


@operation
def record_selection(user, project_id):
    """
    Persist ``user``'s project choice (``None`` clears it). The team is not
    touched; listeners of ``selection_changed`` re-evaluate its consensus and
    may try a guide assignment, both reported back in ``data`` and ``warnings``.
    """
    project = load_project(project_id) if project_id is not None else None

    if project is not None and project.is_assigned and (
        user.team_id is None or project.team_id != user.team_id
    ):
        raise ProjectAlreadyAssignedError()

    previous_project_id = (
        User.objects.filter(pk=user.pk).values_list("selected_project_id", flat=True).first()
    )
    selected_at = timezone.now() if project is not None else None
    updated = User.objects.filter(pk=user.pk).update(
        selected_project=project,
        project_selected_at=selected_at,
    )
    if not updated:
        raise NotFoundError("User not found")

    user.selected_project = project
    user.project_selected_at = selected_at

    logger.info(
        f"{ACTIVITY_PROJECT_SELECTED}: user={user.pk} team={user.team_id} "
        f"project={getattr(project, 'pk', None)}"
    )

    responses = selection_changed.send(
        sender=User,
        user=user,
        team_id=user.team_id,
        project_id=getattr(project, "pk", None),
        previous_project_id=previous_project_id,
    )
    outcome = next((r for _, r in responses if isinstance(r, ConsensusOutcome)), None)

    message = f"Selected project '{project.title}'" if project else "Project selection cleared"
    data = {"user_id": user.pk, "project_id": getattr(project, "pk", None)}
    warnings = []

    if outcome is not None:
        summary = outcome.summary()
        data["consensus"] = summary
        assignment = outcome.assignment
        if assignment is not None:
            data["assignment"] = assignment.to_dict()
            if assignment.success:
                message = f"{message}. {assignment.message}"
            else:
                warnings.append(f"Guide assignment did not complete: {assignment.message}")
        elif not summary["hasConsensus"]:
            message = f"{message} ({summary['selected']}/{summary['required']} members selected)"

    return OperationResult.ok(message, data, warnings=warnings)


def selections_for(team):
    """{member_id: project_id | None} for every current member, in join order."""
    member_ids = team.member_ids
    chosen = dict(
        User.objects.filter(pk__in=member_ids).values_list("pk", "selected_project_id")
    )
    # a member whose user row is gone counts as "no selection"
    return {member_id: chosen.get(member_id) for member_id in member_ids}


def evaluate_consensus(team):
    selections = selections_for(team)
    result = {"hasConsensus": False, "projectId": None, "selections": selections}

    if len(selections) != MAX_TEAM_SIZE:
        return result

    if any(project_id is None for project_id in selections.values()):
        return result

    distinct = set(selections.values())
    if len(distinct) == 1:
        result["hasConsensus"] = True
        result["projectId"] = distinct.pop()

    return result


@operation
def get_selections(team_id):
    team = load_team(team_id)
    return OperationResult.ok("Team project selections", selections_for(team))


@operation
def check_consensus(team_id):
    team = load_team(team_id)
    result = evaluate_consensus(team)
    result["poll_after_seconds"] = settings.CONSENSUS_POLL_SECONDS

    if result["hasConsensus"]:
        return OperationResult.ok("All team members selected the same project", result)
    if len(result["selections"]) < MAX_TEAM_SIZE:
        return OperationResult.ok(f"Team must have {MAX_TEAM_SIZE} members to reach consensus", result)
    return OperationResult.ok("Team members have not agreed on a project yet", result)


def require_consensus(team):
    result = evaluate_consensus(team)
    if not result["hasConsensus"]:
        raise ValidationError("Team has not reached consensus on a project")
    return result["projectId"]
