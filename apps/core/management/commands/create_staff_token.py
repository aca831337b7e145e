from django.core.management.base import BaseCommand

from apps.core.models import StaffToken


class Command(BaseCommand):
    help = "Create a staff token for a verification terminal and print it once"

    def add_arguments(self, parser):
        parser.add_argument('label', type=str)
        parser.add_argument('--days', type=int, default=None, help="Days until expiry, 0 for no expiry")

    def handle(self, *args, **options):
        staff_token, token = StaffToken.create_token(options['label'], expires_days=options['days'])
        expiry = staff_token.expires_at.isoformat() if staff_token.expires_at else 'never'
        self.stdout.write(f"Token for {staff_token.label} (expires {expiry}):\n{token}")
        self.stdout.write(f"Scanner page: /scanner/{token}/")
