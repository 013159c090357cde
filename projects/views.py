from rest_framework import viewsets, permissions
from rest_framework.decorators import action

from core.results import result_response
from .consensus import record_selection
from .models import Project
from .serializers import ProjectSerializer, ProjectSelectionSerializer


class ProjectViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Capstone project catalogue.

    GET  /api/projects/?specialization=AI&available=1
    POST /api/projects/select/   {"project": 3} or {"project": null}
    """
    queryset = Project.objects.select_related('guide', 'team').order_by('id')
    serializer_class = ProjectSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        queryset = super().get_queryset()
        specialization = self.request.query_params.get('specialization')
        if specialization:
            queryset = queryset.filter(specialization=specialization)
        if self.request.query_params.get('available') in ('1', 'true', 'True'):
            queryset = queryset.filter(is_assigned=False)
        return queryset

    @action(detail=False, methods=['post'])
    def select(self, request):
        serializer = ProjectSelectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        project = serializer.validated_data['project']
        return result_response(record_selection(request.user, getattr(project, 'pk', None)))
