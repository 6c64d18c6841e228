import datetime
import logging
from typing import override

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.approval_store import normalize_principal
from core.grant_params import NoScope, coerce_year, parse_grant_params
from core.models import MemberMembership

logger = logging.getLogger(__name__)


def _parse_batches(raw: str) -> list[int]:
    years: list[int] = []
    for part in str(raw or "").split(","):
        if not part.strip():
            continue
        year = coerce_year(part)
        if year is None:
            raise CommandError(f"Invalid batch year: {part.strip()!r}")
        years.append(year)
    return years


class Command(BaseCommand):
    help = "Grant a membership type to a principal, optionally scoped to batch years."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument("email", help="Principal (email address) receiving the grant.")
        parser.add_argument("membership_type", help="Membership type to grant, e.g. ADMIN_L2.")
        parser.add_argument(
            "--days",
            type=int,
            default=0,
            help="Grant length in days (0 = open-ended).",
        )
        parser.add_argument(
            "--batches",
            default="",
            help="Comma-separated batch years, e.g. 2017,2018.",
        )
        parser.add_argument("--from-year", dest="from_year", type=int, default=None)
        parser.add_argument("--to-year", dest="to_year", type=int, default=None)
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be done without writing the grant.",
        )

    @override
    def handle(self, *args, **options) -> None:
        email = normalize_principal(options.get("email"))
        membership_type = str(options.get("membership_type") or "").strip()
        days: int = int(options.get("days") or 0)
        batches = _parse_batches(str(options.get("batches") or ""))
        from_year = options.get("from_year")
        to_year = options.get("to_year")
        dry_run: bool = bool(options.get("dry_run"))

        if not email or not membership_type:
            raise CommandError("Both email and membership_type are required.")
        if days < 0:
            raise CommandError("--days must be zero or a positive integer.")
        if batches and (from_year is not None or to_year is not None):
            raise CommandError("Choose either --batches or --from-year/--to-year.")
        if (from_year is None) != (to_year is None):
            raise CommandError("--from-year and --to-year must be given together.")

        params: dict[str, object] | None = None
        if batches:
            params = {"batches": batches}
        elif from_year is not None:
            params = {"from": from_year, "to": to_year}

        if params is not None and isinstance(parse_grant_params(params), NoScope):
            raise CommandError(f"Batch scope would be ignored: {params!r}")

        start = timezone.now()
        end = start + datetime.timedelta(days=days) if days else None

        if dry_run:
            self.stdout.write(
                f"[dry-run] Would grant {membership_type} to {email} "
                f"(start={start.isoformat()} end={end.isoformat() if end else 'never'} params={params!r})"
            )
            return

        grant = MemberMembership.objects.create(
            user_email=email,
            membership_type=membership_type,
            start_date=start,
            end_date=end,
            params=params,
        )
        logger.info(
            "grant_membership: principal=%s membership_type=%s grant_id=%s params=%r",
            email,
            membership_type,
            grant.pk,
            params,
        )
        self.stdout.write(f"Granted {membership_type} to {email} (id={grant.pk}).")
