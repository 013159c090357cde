from rest_framework import serializers
from .models import Project


class ProjectSerializer(serializers.ModelSerializer):
    guide_name = serializers.CharField(source='guide.display_name', read_only=True, default=None)

    class Meta:
        model = Project
        fields = [
            'id',
            'title',
            'description',
            'specialization',
            'is_assigned',
            'guide',
            'guide_name',
            'team',
            'created_at',
            'updated_at'
        ]
        read_only_fields = ['is_assigned', 'guide', 'team', 'created_at', 'updated_at']


class ProjectSelectionSerializer(serializers.Serializer):
    """``project`` may be null to clear the current selection."""
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all(), allow_null=True)
