"""
Event-driven consensus detection.

Every recorded selection sends ``selection_changed`` and every new team
member sends ``teams.signals.membership_changed``. Either way the team's
consensus is recomputed right away and, while the team is unanimous and still
has no guide, ``consensus_reached`` is sent. Re-sending for an unchanged
selection is how a stalled assignment gets retried; assignment itself is
idempotent once a guide is bound.

Receivers return a ``ConsensusOutcome`` so the operation that triggered the
event can report the consensus state and any assignment attempt.
"""
from dataclasses import dataclass
from typing import Any, Optional
import logging

from django.conf import settings
from django.dispatch import Signal, receiver

from core.constants import MAX_TEAM_SIZE, ACTIVITY_CONSENSUS_REACHED
from core.results import OperationResult
from teams.signals import membership_changed

logger = logging.getLogger('capstone.consensus')

# kwargs: user, team_id, project_id, previous_project_id
selection_changed = Signal()

# kwargs: team, project_id
consensus_reached = Signal()


@dataclass
class ConsensusOutcome:
    team_id: int
    consensus: dict
    assignment: Optional[Any] = None

    def summary(self):
        selections = self.consensus["selections"]
        return {
            "hasConsensus": self.consensus["hasConsensus"],
            "projectId": self.consensus["projectId"],
            "selected": sum(1 for project_id in selections.values() if project_id is not None),
            "required": MAX_TEAM_SIZE,
        }


def reconcile_team(team_id):
    """
    Recompute consensus for ``team_id`` and, for an unassigned unanimous
    team, send ``consensus_reached``. Returns a ConsensusOutcome, or None
    when the team is gone.
    """
    # Lazy imports to avoid circular dependency
    from teams.models import Team
    from .consensus import evaluate_consensus

    team = Team.objects.filter(pk=team_id).first()
    if team is None:
        return None

    outcome = ConsensusOutcome(team_id=team.pk, consensus=evaluate_consensus(team))
    if team.guide_id or not outcome.consensus["hasConsensus"]:
        return outcome

    project_id = outcome.consensus["projectId"]
    logger.info(f"{ACTIVITY_CONSENSUS_REACHED}: team={team.pk} project={project_id}")
    for _, response in consensus_reached.send(sender=Team, team=team, project_id=project_id):
        if isinstance(response, OperationResult):
            outcome.assignment = response
    return outcome


@receiver(selection_changed)
def recompute_team_consensus(sender, user, team_id, project_id, previous_project_id, **kwargs):
    if team_id is None:
        return None
    return reconcile_team(team_id)


@receiver(membership_changed)
def recompute_on_membership(sender, team, user, **kwargs):
    return reconcile_team(team.pk)


@receiver(consensus_reached)
def assign_guide_on_consensus(sender, team, project_id, **kwargs):
    if not getattr(settings, "AUTO_ASSIGN_ON_CONSENSUS", False):
        return None

    from .assignment import assign_faculty_if_consensus

    result = assign_faculty_if_consensus(team.pk)
    if result.success:
        logger.info(f"Automatic assignment for team {team.pk} on project {project_id}: {result.message}")
    else:
        logger.warning(f"Automatic assignment for team {team.pk} failed: {result.error}: {result.message}")
    return result
