# teams/urls.py

from rest_framework.routers import DefaultRouter
from .views import TeamViewSet, InvitationViewSet

router = DefaultRouter()
# registered first so "invitations" is not captured as a team id
router.register(r'invitations', InvitationViewSet, basename='invitations')
router.register(r'', TeamViewSet, basename='teams')

urlpatterns = router.urls
