"""Pending-profile listing and dashboard counts, scoped by approval rights.

Both go through ``ApprovalAuthorizer.resolve_allowed_years`` so a principal
only ever sees profiles it would be allowed to decide on.
"""

import dataclasses
import datetime
import logging

from django.conf import settings
from django.utils import timezone

from core.approval_authorization import ApprovalAuthorizer
from core.approval_store import ApprovalStore, DjangoApprovalStore, PendingProfile
from core.avatar_storage import resolve_avatar_url
from core.models import Profile

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ProfileSummary:
    id: str
    full_name: str
    graduation_year: int | None
    branch: str
    company: str
    designation: str
    avatar_url: str
    avatar_public_url: str | None
    status: str
    is_approved: bool

    def as_dict(self) -> dict[str, object]:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True, slots=True)
class DashboardSummary:
    is_approved: bool
    can_approve: bool
    pending_count: int

    def as_dict(self) -> dict[str, object]:
        return dataclasses.asdict(self)


def _summary(profile: PendingProfile) -> ProfileSummary:
    return ProfileSummary(
        id=profile.id,
        full_name=profile.full_name,
        graduation_year=profile.graduation_year,
        branch=profile.branch,
        company=profile.company,
        designation=profile.designation,
        avatar_url=profile.avatar_url,
        avatar_public_url=resolve_avatar_url(profile.avatar_url),
        status=profile.status,
        is_approved=profile.is_approved,
    )


def list_pending_for(
    principal: str,
    now: datetime.datetime | None = None,
    *,
    store: ApprovalStore | None = None,
    limit: int | None = None,
) -> list[ProfileSummary]:
    store = store if store is not None else DjangoApprovalStore()
    at = timezone.now() if now is None else now

    allowed = ApprovalAuthorizer(store).resolve_allowed_years(principal, at)
    if allowed.is_empty:
        return []

    max_rows = settings.APPROVAL_PENDING_LIST_LIMIT if limit is None else limit
    profiles = store.pending_profiles(years=allowed.year_filter(), limit=max_rows)
    logger.debug(
        "list_pending_for: principal=%s all_years=%s years=%d ranges=%d rows=%d",
        principal,
        allowed.all_years,
        len(allowed.years),
        len(allowed.ranges),
        len(profiles),
    )
    return [_summary(profile) for profile in profiles]


def dashboard_summary(
    principal: str,
    now: datetime.datetime | None = None,
    *,
    store: ApprovalStore | None = None,
) -> DashboardSummary:
    store = store if store is not None else DjangoApprovalStore()
    at = timezone.now() if now is None else now

    own_profile = store.principal_profile(principal)
    is_approved = own_profile is not None and own_profile.status == Profile.Status.approved

    allowed = ApprovalAuthorizer(store).resolve_allowed_years(principal, at)
    if allowed.is_empty:
        return DashboardSummary(is_approved=is_approved, can_approve=False, pending_count=0)

    return DashboardSummary(
        is_approved=is_approved,
        can_approve=True,
        pending_count=store.count_pending_profiles(years=allowed.year_filter()),
    )
