from django.core.management.base import BaseCommand

from apps.warranties.services import expire_overdue_warranties


class Command(BaseCommand):
    help = "Mark active warranties whose expiry date has passed as expired."

    def handle(self, *args, **options):
        expired_count = expire_overdue_warranties()
        self.stdout.write(self.style.SUCCESS(f"Expired warranties: {expired_count}"))
