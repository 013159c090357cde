# teams/views.py - Team Formation API Views

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.results import result_response
from projects import assignment, consensus
from . import invitations, registry
from .models import Team, Invitation
from .policies import TeamPolicy
from .serializers import (
    TeamSerializer,
    TeamCreateSerializer,
    MemberSerializer,
    InvitationSerializer,
    InvitationCreateSerializer,
)

User = get_user_model()


def respond(result, serializer_class=None, many=False):
    """Render an OperationResult, serializing model payloads on success."""
    data = None
    if result.success and result.data is not None and serializer_class is not None:
        data = serializer_class(result.data, many=many).data
    return result_response(result, data=data)


def forbidden(reason):
    return Response({"success": False, "message": reason}, status=status.HTTP_403_FORBIDDEN)


class TeamViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    API for creating and managing capstone teams

    GET  /api/teams/                      my teams
    POST /api/teams/                      create a team (caller becomes leader)
    GET  /api/teams/{id}/capacity/
    POST/DELETE /api/teams/{id}/members/
    GET/POST /api/teams/{id}/invitations/
    GET  /api/teams/{id}/selections/
    GET  /api/teams/{id}/consensus/       polled by clients
    POST /api/teams/{id}/assign/
    """
    serializer_class = TeamSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        if self.action == 'list':
            return registry.list_user_teams(self.request.user).prefetch_related('members__user')
        return Team.objects.prefetch_related('members__user')

    def get_team(self, check=TeamPolicy.can_view_team):
        team = self.get_object()
        allowed, reason = check(self.request.user, team)
        return team, (None if allowed else reason)

    def retrieve(self, request, *args, **kwargs):
        result = registry.get_team(kwargs[self.lookup_field])
        if result.success:
            allowed, reason = TeamPolicy.can_view_team(request.user, result.data)
            if not allowed:
                return forbidden(reason)
        return respond(result, TeamSerializer)

    def create(self, request, *args, **kwargs):
        serializer = TeamCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = registry.create_team(request.user, serializer.validated_data['name'])
        return respond(result, TeamSerializer)

    @action(detail=True, methods=['get'])
    def capacity(self, request, pk=None):
        team, denied = self.get_team()
        if denied:
            return forbidden(denied)
        return result_response(registry.get_team_capacity(team.pk))

    @action(detail=True, methods=['post', 'delete'])
    def members(self, request, pk=None):
        """
        POST   {"user_id": 7}   leader adds a registered student directly
        DELETE {"user_id": 7}   leader removes a member, or a member leaves
        """
        team = self.get_object()
        serializer = MemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = get_object_or_404(User, pk=serializer.validated_data['user_id'])

        if request.method == 'POST':
            allowed, reason = TeamPolicy.can_manage_team(request.user, team)
            if not allowed:
                return forbidden(reason)
            result = registry.add_member(team.pk, user)
        else:
            allowed, reason = TeamPolicy.can_remove_member(request.user, team, user)
            if not allowed:
                return forbidden(reason)
            result = registry.remove_member(team.pk, user)

        return respond(result, TeamSerializer)

    @action(detail=True, methods=['get', 'post'], url_path='invitations')
    def team_invitations(self, request, pk=None):
        if request.method == 'GET':
            team, denied = self.get_team()
            if denied:
                return forbidden(denied)
            result = invitations.list_invitations(
                team_id=team.pk,
                status=request.query_params.get('status'),
            )
            return respond(result, InvitationSerializer, many=True)

        team, denied = self.get_team(check=TeamPolicy.can_manage_team)
        if denied:
            return forbidden(denied)
        serializer = InvitationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = invitations.send_invitation(team.pk, request.user, serializer.validated_data['email'])
        return respond(result, InvitationSerializer)

    @action(detail=True, methods=['get'])
    def selections(self, request, pk=None):
        team, denied = self.get_team()
        if denied:
            return forbidden(denied)
        return result_response(consensus.get_selections(team.pk))

    @action(detail=True, methods=['get'], url_path='consensus')
    def team_consensus(self, request, pk=None):
        team, denied = self.get_team()
        if denied:
            return forbidden(denied)
        return result_response(consensus.check_consensus(team.pk))

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        team, denied = self.get_team(check=TeamPolicy.can_assign)
        if denied:
            return forbidden(denied)
        return result_response(assignment.assign_faculty_if_consensus(team.pk))


class InvitationViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Invitations addressed to the current user.

    GET  /api/teams/invitations/?status=pending
    POST /api/teams/invitations/{id}/accept/
    POST /api/teams/invitations/{id}/reject/
    POST /api/teams/invitations/{id}/cancel/    (team leader)
    """
    serializer_class = InvitationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        return Invitation.objects.select_related('team', 'inviter', 'invited_user').filter(
            Q(invited_user=user)
            | Q(invited_email=invitations.normalize_email(user.email))
            | Q(team__leader=user)
            | Q(inviter=user)
        ).distinct()

    def list(self, request, *args, **kwargs):
        result = invitations.list_invitations(
            user=request.user,
            status=request.query_params.get('status'),
        )
        response = respond(result, InvitationSerializer, many=True)
        response.data["poll_after_seconds"] = settings.INVITATION_POLL_SECONDS
        return response

    @action(detail=True, methods=['post'])
    def accept(self, request, pk=None):
        return respond(invitations.accept_invitation(pk, request.user), InvitationSerializer)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        return respond(invitations.reject_invitation(pk, request.user), InvitationSerializer)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        return respond(invitations.cancel_invitation(pk, request.user), InvitationSerializer)


class InvitationLinkView(APIView):
    """
    GET /invitation/<team_id>/<invitation_id>/
    GET /invitation/<team_id>/<invitation_id>/?action=accept|reject

    Target of the emailed link. With an action the response is applied in one
    click; without one the invitation is returned for display.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, team_id, invitation_id):
        invitation = get_object_or_404(Invitation, pk=invitation_id, team_id=team_id)
        action_name = request.query_params.get('action')

        if action_name == invitations.ACTION_ACCEPT:
            return respond(invitations.accept_invitation(invitation.pk, request.user), InvitationSerializer)
        if action_name == invitations.ACTION_REJECT:
            return respond(invitations.reject_invitation(invitation.pk, request.user), InvitationSerializer)
        if action_name:
            return Response(
                {"success": False, "message": f"Unknown action '{action_name}'"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response({
            "success": True,
            "message": "Invitation",
            "data": InvitationSerializer(invitation).data,
        })
