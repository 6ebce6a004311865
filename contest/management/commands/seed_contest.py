"""
Reset the contest.

Deletes every vote and candidate, makes sure the default admin exists and
(unless --no-candidates) creates placeholder king and queen candidates.
Photos for the placeholders are expected under MEDIA_ROOT/candidates/.
"""

import logging

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.core.management.base import BaseCommand  # pyright: ignore[reportMissingModuleSource]
from django.db import transaction  # pyright: ignore[reportMissingModuleSource]

from contest.models import AdminAccount, Candidate, Vote

logger = logging.getLogger(__name__)

PLACEHOLDERS_PER_CATEGORY = 3


class Command(BaseCommand):
    help = 'Delete all votes and candidates, create the default admin and seed candidates.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--no-candidates',
            action='store_true',
            help='Only reset votes/candidates and ensure the admin, do not seed candidates',
        )

    def handle(self, *args, **options):
        with transaction.atomic():
            deleted_votes, _ = Vote.objects.all().delete()
            deleted_candidates, _ = Candidate.objects.all().delete()
            logger.info(f"Reseed: removed {deleted_votes} votes, {deleted_candidates} candidates")

            self._ensure_admin()

            if not options['no_candidates']:
                self._seed_candidates()

        self.stdout.write(self.style.SUCCESS('Database seeded successfully!'))

    def _ensure_admin(self):
        email = AdminAccount.normalize_email(settings.SEED_ADMIN_EMAIL)
        if AdminAccount.objects.filter(email=email).exists():
            return

        admin = AdminAccount(email=email, name='Admin')
        admin.set_password(settings.SEED_ADMIN_PASSWORD)
        admin.save()

        self.stdout.write(f'Default admin created: {email}')
        self.stdout.write(self.style.WARNING('Please change this password after first login!'))

    def _seed_candidates(self):
        for category, label in Candidate.CATEGORY_CHOICES:
            for number in range(1, PLACEHOLDERS_PER_CATEGORY + 1):
                Candidate.objects.create(
                    name=f'{label} Candidate {number}',
                    category=category,
                    photo_url=f'{settings.MEDIA_URL}candidates/{category}{number}.jpg',
                )
            self.stdout.write(f'  - {PLACEHOLDERS_PER_CATEGORY} {label} candidates')
