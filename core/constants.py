# core/constants.py

# --- Team formation limits ---
MAX_TEAM_SIZE = 4

# Faculty without an explicit limit may guide this many teams
DEFAULT_FACULTY_MAX_TEAMS = 3

# Projects imported without a specialization fall into this pool
DEFAULT_SPECIALIZATION = "General"

# --- Activity Verbs (used in log lines) ---

# Teams
ACTIVITY_TEAM_CREATED = "team.created"
ACTIVITY_MEMBER_JOINED = "team.member_joined"
ACTIVITY_MEMBER_REMOVED = "team.member_removed"

# Invitations
ACTIVITY_INVITATION_SENT = "invitation.sent"
ACTIVITY_INVITATION_ACCEPTED = "invitation.accepted"
ACTIVITY_INVITATION_REJECTED = "invitation.rejected"
ACTIVITY_INVITATION_CANCELLED = "invitation.cancelled"
ACTIVITY_INVITATION_EXPIRED = "invitation.expired"

# Projects
ACTIVITY_PROJECT_SELECTED = "project.selected"
ACTIVITY_CONSENSUS_REACHED = "project.consensus_reached"
ACTIVITY_PROJECT_LOCKED = "project.locked"
ACTIVITY_GUIDE_ASSIGNED = "team.guide_assigned"
