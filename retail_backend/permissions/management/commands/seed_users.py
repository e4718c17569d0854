# permissions/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from permissions.roles import (
    ROLE_ADMIN,
    ROLE_CASHIER,
    ROLE_MANAGER,
    ROLE_PRECEDENCE,
    ROLE_STOREKEEPER,
)


@dataclass(frozen=True)
class SeedUserSpec:
    label: str
    role: str
    username: str
    email: str


SEED_USERS = [
    SeedUserSpec("Admin", ROLE_ADMIN, "admin", "admin@example.com"),
    SeedUserSpec("Manager", ROLE_MANAGER, "manager", "manager@example.com"),
    SeedUserSpec("Storekeeper", ROLE_STOREKEEPER, "storekeeper", "storekeeper@example.com"),
    SeedUserSpec("Cashier", ROLE_CASHIER, "cashier", "cashier@example.com"),
]


def ensure_role_groups() -> dict[str, Group]:
    """
    Create one auth Group per staff role (idempotent).
    """
    return {
        role: Group.objects.get_or_create(name=role)[0]
        for role in ROLE_PRECEDENCE
    }


class Command(BaseCommand):
    help = "Seed role groups and one staff user per role."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="If set, resets password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        if len(password) < 6:
            raise CommandError("--password must be at least 6 characters.")

        User = get_user_model()
        groups = ensure_role_groups()

        created_count = 0

        for spec in SEED_USERS:
            user, created = User.objects.get_or_create(
                username=spec.username,
                defaults={
                    "email": spec.email,
                    "is_staff": True,
                    "is_superuser": spec.role == ROLE_ADMIN,
                },
            )

            if created or force_password:
                user.set_password(password)
                user.save(update_fields=["password"])

            user.groups.add(groups[spec.role])

            if created:
                created_count += 1
                self.stdout.write(f"✅ created: {spec.label} ({spec.role})")
            else:
                self.stdout.write(f"↩︎ exists:  {spec.label} ({spec.role})")

        self.stdout.write(f"\nCreated users: {created_count}")
