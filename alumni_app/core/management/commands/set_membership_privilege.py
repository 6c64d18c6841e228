from typing import override

from django.core.management.base import BaseCommand, CommandError

from core.models import MembershipPrivilege


class Command(BaseCommand):
    help = "Create or update a privilege row for a membership type."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument("membership_type")
        parser.add_argument("privilege", help="Privilege name, e.g. APPROVE_ONBOARD_BATCH.")
        parser.add_argument("--view", action="store_true")
        parser.add_argument("--edit", action="store_true")
        parser.add_argument("--execute", action="store_true")
        parser.add_argument(
            "--remove",
            action="store_true",
            help="Delete the privilege row instead of writing it.",
        )

    @override
    def handle(self, *args, **options) -> None:
        membership_type = str(options.get("membership_type") or "").strip()
        privilege = str(options.get("privilege") or "").strip().upper()
        if not membership_type or not privilege:
            raise CommandError("Both membership_type and privilege are required.")

        if options.get("remove"):
            deleted, _ = MembershipPrivilege.objects.filter(
                membership_type=membership_type,
                privilege=privilege,
            ).delete()
            self.stdout.write(f"Removed {deleted} privilege row(s) for {membership_type}: {privilege}.")
            return

        row, created = MembershipPrivilege.objects.update_or_create(
            membership_type=membership_type,
            privilege=privilege,
            defaults={
                "view": bool(options.get("view")),
                "edit": bool(options.get("edit")),
                "execute": bool(options.get("execute")),
            },
        )
        verb = "Created" if created else "Updated"
        self.stdout.write(
            f"{verb} {row.membership_type}: {row.privilege} "
            f"(view={row.view} edit={row.edit} execute={row.execute})."
        )
