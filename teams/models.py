# teams/models.py
from dataclasses import dataclass

from django.conf import settings
from django.db import models
from django.db.models import Q


class Team(models.Model):
    """
    Capstone project team.

    Lifecycle: created "forming" by its leader, becomes "assigned" only when
    the assignment coordinator binds a project and a faculty guide to it.
    Membership is the ordered set of TeamMember rows (leader first).
    """
    STATUS_FORMING = "forming"
    STATUS_ASSIGNED = "assigned"

    STATUS_CHOICES = [
        (STATUS_FORMING, "Forming"),
        (STATUS_ASSIGNED, "Assigned"),
    ]

    name = models.CharField(max_length=100)
    number = models.CharField(max_length=32, blank=True, default="")
    leader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="led_teams",
    )
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_FORMING)

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="teams",
    )
    guide = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="guided_teams",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["guide"], name="team_guide_idx"),
            models.Index(fields=["status", "created_at"], name="team_status_created_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.number or self.pk})"

    @property
    def member_ids(self):
        return list(self.members.order_by("joined_at", "id").values_list("user_id", flat=True))

    @property
    def current_size(self):
        return self.members.count()


class TeamMember(models.Model):
    ROLE_LEADER = "leader"
    ROLE_MEMBER = "member"

    ROLE_CHOICES = [
        (ROLE_LEADER, "Team Leader"),
        (ROLE_MEMBER, "Member"),
    ]

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="team_memberships")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("team", "user")
        ordering = ["joined_at", "id"]
        indexes = [
            models.Index(fields=["team", "joined_at"], name="teammember_team_joined_idx"),
        ]

    def __str__(self):
        return f"{self.user.username} in {self.team.name}"


@dataclass(frozen=True)
class RegisteredUser:
    id: int


@dataclass(frozen=True)
class PendingEmail:
    address: str


class Invitation(models.Model):
    """
    A proposal for one email address to join one team.

    ``invited_user`` is empty while the invitee has no account; the
    deterministic ``placeholder_id`` stands in for it until acceptance.
    """
    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"
    STATUS_REJECTED = "rejected"
    STATUS_CANCELLED = "cancelled"
    STATUS_EXPIRED = "expired"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_ACCEPTED, "Accepted"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_EXPIRED, "Expired"),
    ]

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="invitations")
    inviter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="sent_invitations",
    )
    invited_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="team_invitations",
    )
    invited_email = models.EmailField()
    invited_name = models.CharField(max_length=255, blank=True, default="")
    placeholder_id = models.CharField(max_length=300, blank=True, default="")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    responded_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["team", "invited_email"],
                condition=Q(status="pending"),
                name="unique_pending_invite_per_email",
            ),
        ]
        indexes = [
            models.Index(fields=["team", "status"], name="invite_team_status_idx"),
            models.Index(fields=["invited_email", "status"], name="invite_email_status_idx"),
        ]

    def __str__(self):
        return f"{self.invited_email} -> {self.team.name} ({self.status})"

    @property
    def invited_user_id_or_placeholder(self):
        if self.invited_user_id:
            return str(self.invited_user_id)
        return self.placeholder_id

    @property
    def invitee(self):
        if self.invited_user_id:
            return RegisteredUser(self.invited_user_id)
        return PendingEmail(self.invited_email)
