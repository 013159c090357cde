from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from .models import Notification
from .serializers import NotificationSerializer


class MyNotificationsView(APIView):
    """
    In-app inbox for invitation responses and guide assignments.

    GET  /api/notifications/me/?unread=true&team=<id>&type=guide_assigned
    POST /api/notifications/me/   {"ids": [1, 2]}  (omit ids to mark everything read)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = Notification.objects.filter(user=request.user).select_related("team")

        unread_only = request.query_params.get("unread")
        if unread_only and unread_only.lower() in ("1", "true", "yes"):
            qs = qs.filter(is_read=False)

        team_id = request.query_params.get("team")
        if team_id and team_id.isdigit():
            qs = qs.filter(team_id=int(team_id))

        notification_type = request.query_params.get("type")
        if notification_type:
            qs = qs.filter(type=notification_type)

        return Response(NotificationSerializer(qs, many=True).data)

    def post(self, request):
        ids = request.data.get("ids")
        qs = Notification.objects.filter(user=request.user, is_read=False)
        if ids:
            qs = qs.filter(id__in=ids)

        return Response({"marked_read": qs.update(is_read=True)}, status=status.HTTP_200_OK)
