# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

from core.constants import DEFAULT_FACULTY_MAX_TEAMS


class User(AbstractUser):
    ROLE_STUDENT = 'student'
    ROLE_FACULTY = 'faculty'
    ROLE_REVIEWER = 'reviewer'
    ROLE_ADMIN = 'admin'

    ROLE_CHOICES = (
        (ROLE_STUDENT, 'Student'),
        (ROLE_FACULTY, 'Faculty'),
        (ROLE_REVIEWER, 'Reviewer'),
        (ROLE_ADMIN, 'Admin'),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_STUDENT
    )

    name = models.CharField(max_length=255, blank=True, default='')
    roll_no = models.CharField(max_length=32, blank=True, null=True, help_text="Students only")

    # Faculty / reviewer fields
    specialization = models.CharField(max_length=100, blank=True, null=True, help_text="School the faculty guides for")
    max_teams = models.PositiveIntegerField(default=DEFAULT_FACULTY_MAX_TEAMS)
    designation = models.CharField(max_length=100, blank=True, null=True)

    # The team this student currently belongs to
    team = models.ForeignKey(
        'teams.Team',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='member_users',
    )

    # Per-member project selection, aggregated by the consensus resolver
    selected_project = models.ForeignKey(
        'projects.Project',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='selected_by',
    )
    project_selected_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        indexes = [
            models.Index(fields=['role', 'specialization'], name='user_role_spec_idx'),
        ]

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username

    @property
    def is_faculty(self):
        return self.role == self.ROLE_FACULTY

    def __str__(self):
        return self.username
