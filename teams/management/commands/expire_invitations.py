from django.core.management.base import BaseCommand
from django.conf import settings

from teams.invitations import expire_stale_invitations


class Command(BaseCommand):
    help = "Expires pending team invitations older than INVITATION_EXPIRY_DAYS"

    def handle(self, *args, **options):
        expired = expire_stale_invitations()
        self.stdout.write(
            self.style.SUCCESS(
                f"Expired {expired} invitation(s) older than {settings.INVITATION_EXPIRY_DAYS} days"
            )
        )
