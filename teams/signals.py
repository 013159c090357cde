"""
Team membership events.

``membership_changed`` is sent after a user joins a team. Receivers may
return an object with an ``assignment`` attribute (an OperationResult) when
the new member completed a unanimous team and a guide assignment was tried.
"""
from django.dispatch import Signal

# kwargs: team, user
membership_changed = Signal()
