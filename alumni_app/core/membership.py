import datetime
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.approval_store import normalize_principal, store_errors
from core.models import MemberMembership

logger = logging.getLogger(__name__)


def admin_membership_types() -> tuple[str, str]:
    first, second = settings.APPROVAL_ADMIN_MEMBERSHIP_TYPES
    return str(first), str(second)


def _toggled_type(current: str, *, types: tuple[str, str]) -> str:
    first, second = types
    return first if current == second else second


def toggle_admin_membership(principal: str, now: datetime.datetime | None = None) -> str:
    """Flip the principal's admin grants between the two admin membership types.

    All of the principal's grants of either admin type move to the type opposite
    to the first one's. A principal without such grants gets a new grant of the
    default type, starting now and lasting the configured term.

    Returns the membership type the grants now carry.
    """
    email = normalize_principal(principal)
    if not email:
        raise ValueError("principal is required")

    types = admin_membership_types()
    at = timezone.now() if now is None else now

    with store_errors("toggle_admin_membership"), transaction.atomic():
        rows = list(
            MemberMembership.objects.select_for_update()
            .for_principal(email)
            .filter(membership_type__in=types)
            .order_by("start_date", "id")
        )

        if rows:
            new_type = _toggled_type(rows[0].membership_type, types=types)
            MemberMembership.objects.filter(pk__in=[row.pk for row in rows]).update(membership_type=new_type)
            logger.info(
                "toggle_admin_membership: principal=%s rows=%d new_type=%s",
                email,
                len(rows),
                new_type,
            )
            return new_type

        new_type = str(settings.APPROVAL_ADMIN_TOGGLE_DEFAULT_TYPE)
        MemberMembership.objects.create(
            user_email=email,
            membership_type=new_type,
            start_date=at,
            end_date=at + datetime.timedelta(days=settings.APPROVAL_ADMIN_TOGGLE_TERM_DAYS),
        )
        logger.info("toggle_admin_membership: principal=%s created new_type=%s", email, new_type)
        return new_type
