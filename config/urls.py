from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from core.views import HealthCheckView
from teams.views import InvitationLinkView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/users/', include('users.urls')),
    path("api/auth/jwt/login/", TokenObtainPairView.as_view(), name="jwt-login"),
    path("api/auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path('api/teams/', include('teams.urls')),
    path('api/projects/', include('projects.urls')),
    path('api/notifications/', include('notifications.urls')),
    path(
        'invitation/<int:team_id>/<int:invitation_id>/',
        InvitationLinkView.as_view(),
        name='invitation-link',
    ),
    path("api/health/", HealthCheckView.as_view(), name="health-check"),
]
