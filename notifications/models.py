# notifications/models.py
from django.db import models
from django.conf import settings


class Notification(models.Model):
    TYPE_TEAM_INVITATION = "team_invitation"
    TYPE_INVITATION_ACCEPTED = "invitation_accepted"
    TYPE_INVITATION_REJECTED = "invitation_rejected"
    TYPE_GUIDE_ASSIGNED = "guide_assigned"
    TYPE_SYSTEM = "system"

    TYPE_CHOICES = [
        (TYPE_TEAM_INVITATION, "Team Invitation"),
        (TYPE_INVITATION_ACCEPTED, "Invitation Accepted"),
        (TYPE_INVITATION_REJECTED, "Invitation Rejected"),
        (TYPE_GUIDE_ASSIGNED, "Guide Assigned"),
        (TYPE_SYSTEM, "System"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=64, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    body = models.TextField(blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    team = models.ForeignKey(
        "teams.Team",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notifications",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read"], name="notif_user_read_idx"),
            models.Index(fields=["type"], name="notif_type_idx"),
        ]

    def __str__(self):
        return f"{self.user} - {self.type} - {self.title}"
