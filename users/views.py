# users/views.py

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model

from projects.assignment import faculty_with_load
from .serializers import UserSerializer, FacultyLoadSerializer

User = get_user_model()


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Standard User API
    """
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        # Listing everyone is not exposed; lookups by id still work
        if self.action == 'list':
            return User.objects.none()
        return super().get_queryset()

    @action(detail=False, methods=['get'])
    def me(self, request):
        """
        GET /api/users/me/
        Return current user info
        """
        serializer = self.get_serializer(request.user)
        return Response(serializer.data)

    @action(detail=False, methods=['get'])
    def faculty(self, request):
        """
        GET /api/users/faculty/?specialization=CS
        Faculty with their current guide load (derived from teams).
        """
        specialization = request.query_params.get('specialization')
        serializer = FacultyLoadSerializer(faculty_with_load(specialization), many=True)
        return Response(serializer.data)
