# teams/policies.py
"""
Centralized permission checks for team actions.

Views should use these methods instead of inline permission logic.
All methods return bool or (bool, str) with reason.
"""
from typing import Tuple

from .models import Team, TeamMember


class TeamPolicy:

    @staticmethod
    def is_system_admin(user) -> bool:
        if not user or not user.is_authenticated:
            return False
        return user.is_superuser or user.role == 'admin'

    @staticmethod
    def is_member(user, team: Team) -> bool:
        if not user or not user.is_authenticated or team is None:
            return False
        return TeamMember.objects.filter(team=team, user=user).exists()

    @staticmethod
    def is_leader(user, team: Team) -> bool:
        if not user or not user.is_authenticated or team is None:
            return False
        return team.leader_id == user.id

    @staticmethod
    def can_view_team(user, team: Team) -> Tuple[bool, str]:
        if TeamPolicy.is_system_admin(user):
            return True, ""

        if TeamPolicy.is_member(user, team):
            return True, ""

        if team.guide_id and team.guide_id == getattr(user, "id", None):
            return True, ""

        return False, "You are not a member of this team"

    @staticmethod
    def can_manage_team(user, team: Team) -> Tuple[bool, str]:
        """Invites, cancellations and member removal."""
        if TeamPolicy.is_system_admin(user):
            return True, ""

        if TeamPolicy.is_leader(user, team):
            return True, ""

        return False, "Only the team leader can manage this team"

    @staticmethod
    def can_remove_member(user, team: Team, member) -> Tuple[bool, str]:
        # Members may always leave on their own
        if member.pk == getattr(user, "id", None):
            return True, ""

        return TeamPolicy.can_manage_team(user, team)

    @staticmethod
    def can_assign(user, team: Team) -> Tuple[bool, str]:
        if TeamPolicy.is_system_admin(user):
            return True, ""

        if TeamPolicy.is_member(user, team):
            return True, ""

        return False, "Only team members can request guide assignment"
