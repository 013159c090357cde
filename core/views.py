from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework import status
from django.db import connections
from django.db.utils import OperationalError
from django.conf import settings
import time


class HealthCheckView(APIView):
    """
    Public uptime check for the team service.

    Reports store connectivity plus the flags that change how teams move
    through formation, so a misconfigured deployment is visible at a glance.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        start = time.time()

        try:
            connections["default"].cursor()
            store_ok = True
        except OperationalError:
            store_ok = False

        return Response(
            {
                "status": "ok" if store_ok else "degraded",
                "store": store_ok,
                "env": getattr(settings, "ENV", "unknown"),
                "auto_assign": settings.AUTO_ASSIGN_ON_CONSENSUS,
                "invitation_expiry_days": settings.INVITATION_EXPIRY_DAYS,
                "latency_ms": int((time.time() - start) * 1000),
            },
            status=status.HTTP_200_OK if store_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
