# notifications/gateway.py
"""
Best-effort notification delivery.

``deliver`` never raises: a failed send is logged and reported back as a
``DeliveryResult`` with ``ok=False`` so callers can surface a warning
without undoing the state change that triggered it.
"""
from dataclasses import dataclass
import logging

from django.conf import settings
from django.core.mail import send_mail

from .models import Notification

logger = logging.getLogger("capstone.notifications")


@dataclass
class DeliveryResult:
    ok: bool
    message: str = ""


def deliver(address, payload) -> DeliveryResult:
    """
    Send ``payload`` ({"subject", "message"}) to ``address`` by email.
    """
    if not address:
        return DeliveryResult(ok=False, message="No recipient address")

    try:
        sent = send_mail(
            subject=payload["subject"],
            message=payload["message"],
            from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipient_list=[address],
            fail_silently=False,
        )
    except Exception as exc:
        logger.warning(f"Delivery to {address} failed: {exc}")
        return DeliveryResult(ok=False, message=str(exc) or exc.__class__.__name__)

    if not sent:
        logger.warning(f"Delivery to {address} was not accepted by the mail backend")
        return DeliveryResult(ok=False, message="Mail backend accepted no messages")

    return DeliveryResult(ok=True, message=f"Delivered to {address}")


def notify_user(user, type, title, body="", team=None):
    """
    In-app notification for a registered user. Best effort, like ``deliver``.
    """
    if user is None:
        return None
    try:
        return Notification.objects.create(user=user, type=type, title=title, body=body, team=team)
    except Exception as exc:
        logger.warning(f"Failed to record notification for user {user.pk}: {exc}")
        return None


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def invitation_payload(invitation, link, accept_link, reject_link):
    team = invitation.team
    inviter = invitation.inviter
    inviter_name = inviter.display_name if inviter else "Your team leader"

    subject = f"Team invitation: {team.name}"
    message = (
        f"Hi {invitation.invited_name or 'there'},\n\n"
        f"{inviter_name} has invited you to join the capstone team:\n"
        f"  {team.name} ({team.number})\n\n"
        f"View the invitation:\n{link}\n\n"
        f"Accept right away:\n{accept_link}\n\n"
        f"Decline:\n{reject_link}\n\n"
        f"Best,\n"
        f"Capstone Projects"
    )
    return {"subject": subject, "message": message}


def response_payload(invitation, accepted):
    team = invitation.team
    verb = "accepted" if accepted else "declined"
    subject = f"{invitation.invited_name or invitation.invited_email} {verb} your invitation"
    message = (
        f"Hi,\n\n"
        f"{invitation.invited_name or invitation.invited_email} ({invitation.invited_email}) "
        f"has {verb} the invitation to join {team.name} ({team.number}).\n\n"
        f"Best,\n"
        f"Capstone Projects"
    )
    return {"subject": subject, "message": message}


def guide_assigned_payload(team, project, guide):
    subject = f"{team.name}: project and guide assigned"
    message = (
        f"Hi,\n\n"
        f"Team {team.name} ({team.number}) has been assigned:\n"
        f"  Project: {project.title}\n"
        f"  Guide: {guide.display_name} ({guide.email})\n\n"
        f"Best,\n"
        f"Capstone Projects"
    )
    return {"subject": subject, "message": message}
