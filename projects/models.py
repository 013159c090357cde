from django.db import models
from django.conf import settings

from core.constants import DEFAULT_SPECIALIZATION


class Project(models.Model):
    """
    A capstone project teams select and compete for.

    ``is_assigned`` flips false -> true at most once; ``version`` is bumped
    by every committed lock so a stale reader can never win the project.
    """
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    specialization = models.CharField(max_length=100, default=DEFAULT_SPECIALIZATION)

    is_assigned = models.BooleanField(default=False)
    guide = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="guided_projects",
    )
    team = models.ForeignKey(
        "teams.Team",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="won_projects",
        help_text="The team that locked this project",
    )
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["specialization", "is_assigned"], name="project_spec_assigned_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.specialization})"
