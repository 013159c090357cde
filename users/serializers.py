from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'name',
            'role',
            'roll_no',
            'specialization',
            'max_teams',
            'team',
            'selected_project',
            'project_selected_at',
            'date_joined',
        ]
        read_only_fields = fields


class FacultyLoadSerializer(serializers.ModelSerializer):
    """Faculty with their derived load; ``assigned_teams`` is annotated by the queryset."""
    assigned_teams = serializers.IntegerField(read_only=True)
    has_capacity = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'name', 'email', 'specialization', 'max_teams', 'assigned_teams', 'has_capacity']

    def get_has_capacity(self, obj):
        return obj.assigned_teams < obj.max_teams
