# teams/serializers.py

from rest_framework import serializers

from .invitations import build_invitation_link
from .models import Team, TeamMember, Invitation
from .registry import get_capacity


class TeamMemberSerializer(serializers.ModelSerializer):
    """Serializer for team members"""
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    username = serializers.CharField(source='user.username', read_only=True)
    name = serializers.CharField(source='user.display_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    roll_no = serializers.CharField(source='user.roll_no', read_only=True)
    selected_project = serializers.IntegerField(source='user.selected_project_id', read_only=True)

    class Meta:
        model = TeamMember
        fields = ['id', 'user_id', 'username', 'name', 'email', 'roll_no', 'role', 'selected_project', 'joined_at']
        read_only_fields = fields


class TeamSerializer(serializers.ModelSerializer):
    members = TeamMemberSerializer(many=True, read_only=True)
    leader_name = serializers.CharField(source='leader.display_name', read_only=True)
    guide_name = serializers.CharField(source='guide.display_name', read_only=True, default=None)
    capacity = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = [
            'id', 'name', 'number', 'leader', 'leader_name', 'status',
            'project', 'guide', 'guide_name', 'members', 'capacity',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_capacity(self, obj):
        return get_capacity(obj)


class TeamCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)


class MemberSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()


class InvitationSerializer(serializers.ModelSerializer):
    team_name = serializers.CharField(source='team.name', read_only=True)
    team_number = serializers.CharField(source='team.number', read_only=True)
    inviter_name = serializers.CharField(source='inviter.display_name', read_only=True, default=None)
    invited_user_id = serializers.CharField(source='invited_user_id_or_placeholder', read_only=True)
    link = serializers.SerializerMethodField()

    class Meta:
        model = Invitation
        fields = [
            'id', 'team', 'team_name', 'team_number', 'inviter', 'inviter_name',
            'invited_user_id', 'invited_email', 'invited_name', 'status',
            'created_at', 'responded_at', 'link',
        ]
        read_only_fields = fields

    def get_link(self, obj):
        return build_invitation_link(obj.team_id, obj.pk)


class InvitationCreateSerializer(serializers.Serializer):
    # format is checked by the invitation manager after normalization
    email = serializers.CharField(max_length=254)
