"""
Management command to create a staff account and print a session cookie.
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from cafe.domain.order import AdminRole
from cafe.infra.identity import issue_session_token
from cafe.infra.models import AdminUserORM


class Command(BaseCommand):
    help = 'Create or reactivate a staff member and print an admin session cookie'

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument(
            '--role',
            default=AdminRole.ORDER_PROCESSOR.value,
            choices=[role.value for role in AdminRole],
            help='Staff role',
        )

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        if not email:
            raise CommandError('Email is required')

        staff, created = AdminUserORM.objects.update_or_create(
            email=email,
            defaults={"role": options['role'], "is_active": True},
        )
        token = issue_session_token(staff.id, staff.role)

        verb = 'Created' if created else 'Updated'
        self.stdout.write(self.style.SUCCESS(f'{verb} {staff.role} {staff.email} ({staff.id})'))
        self.stdout.write(f'{settings.CAFFICO_ADMIN_SESSION_COOKIE}={token}')
