"""Store collaborator for the approval engine, workflow and listing.

The engine receives an ``ApprovalStore`` instead of reaching for the ORM
itself, so request handling owns the store's lifecycle and tests can pass an
in-memory double. ``DjangoApprovalStore`` is the ORM-backed implementation.

Every ORM failure is re-raised as ``StoreUnavailableError``; a failed read is
never turned into an empty result.
"""

from __future__ import annotations

import datetime
import logging
import operator
import uuid
from collections.abc import Collection, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import reduce
from typing import Protocol

from django.db import DatabaseError, transaction
from django.db.models import Q

from core.exceptions import StoreUnavailableError
from core.grant_params import GrantScope, parse_grant_params
from core.models import ApprovalAudit, MemberMembership, MembershipPrivilege, Profile

logger = logging.getLogger(__name__)

# Largest value a PositiveIntegerField accepts on every supported backend.
_YEAR_COLUMN_MAX = 2_147_483_647


def normalize_principal(principal: object) -> str:
    return str(principal or "").strip().lower()


@dataclass(frozen=True, slots=True)
class MembershipGrant:
    membership_type: str
    start_date: datetime.datetime
    end_date: datetime.datetime | None
    scope: GrantScope
    raw_params: object = None

    def is_active(self, at: datetime.datetime) -> bool:
        if self.start_date > at:
            return False
        return self.end_date is None or self.end_date >= at


@dataclass(frozen=True, slots=True)
class PrivilegeEntry:
    membership_type: str
    privilege: str
    execute: bool
    view: bool = False
    edit: bool = False


@dataclass(frozen=True, slots=True)
class TargetProfile:
    id: str
    status: str
    graduation_year: int | None


@dataclass(frozen=True, slots=True)
class YearFilter:
    """Graduation years a listing selects: explicit years plus inclusive ranges."""

    years: frozenset[int] = frozenset()
    ranges: tuple[tuple[int, int], ...] = ()

    def __contains__(self, year: object) -> bool:
        if not isinstance(year, int) or isinstance(year, bool):
            return False
        return year in self.years or any(start <= year <= end for start, end in self.ranges)


@dataclass(frozen=True, slots=True)
class PendingProfile:
    id: str
    full_name: str
    graduation_year: int | None
    branch: str
    company: str
    designation: str
    avatar_url: str
    status: str
    is_approved: bool


class ApprovalStore(Protocol):
    def grants_for_principal(self, principal: str, *, at: datetime.datetime) -> list[MembershipGrant]: ...

    def privileges_for_types(self, membership_types: Collection[str]) -> list[PrivilegeEntry]: ...

    def principal_profile(self, principal: str) -> TargetProfile | None: ...

    def load_profile(self, profile_id: str) -> TargetProfile | None: ...

    def transition_pending_profile(
        self,
        *,
        profile_id: str,
        new_status: str,
        approver: str,
        decided_at: datetime.datetime,
    ) -> bool: ...

    def record_audit(
        self,
        *,
        profile_id: str,
        approver: str,
        membership_type: str | None,
        action: str,
        at: datetime.datetime,
    ) -> None: ...

    def pending_profiles(self, *, years: YearFilter | None, limit: int) -> list[PendingProfile]: ...

    def count_pending_profiles(self, *, years: YearFilter | None) -> int: ...


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DatabaseError as exc:
        logger.exception("%s: store call failed", operation)
        raise StoreUnavailableError() from exc


def _parse_profile_id(profile_id: object) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(profile_id or "").strip())
    except ValueError:
        return None


def _target_profile(profile: Profile) -> TargetProfile:
    return TargetProfile(
        id=str(profile.pk),
        status=profile.status,
        graduation_year=profile.graduation_year,
    )


class DjangoApprovalStore:
    """ApprovalStore over the Django ORM and the default database."""

    def grants_for_principal(self, principal: str, *, at: datetime.datetime) -> list[MembershipGrant]:
        with store_errors("DjangoApprovalStore.grants_for_principal"):
            rows = list(
                MemberMembership.objects.for_principal(principal)
                .active(at=at)
                .order_by("start_date", "id")
                .only("membership_type", "start_date", "end_date", "params")
            )
        return [
            MembershipGrant(
                membership_type=row.membership_type,
                start_date=row.start_date,
                end_date=row.end_date,
                scope=parse_grant_params(row.params),
                raw_params=row.params,
            )
            for row in rows
        ]

    def privileges_for_types(self, membership_types: Collection[str]) -> list[PrivilegeEntry]:
        types = sorted({str(t or "").strip() for t in membership_types} - {""})
        if not types:
            return []
        with store_errors("DjangoApprovalStore.privileges_for_types"):
            rows = list(MembershipPrivilege.objects.filter(membership_type__in=types).order_by("id"))
        return [
            PrivilegeEntry(
                membership_type=row.membership_type,
                privilege=row.privilege,
                execute=bool(row.execute),
                view=bool(row.view),
                edit=bool(row.edit),
            )
            for row in rows
        ]

    def principal_profile(self, principal: str) -> TargetProfile | None:
        normalized = normalize_principal(principal)
        if not normalized:
            return None
        with store_errors("DjangoApprovalStore.principal_profile"):
            profile = (
                Profile.objects.for_email(normalized)
                .order_by("created_at", "id")
                .only("id", "status", "graduation_year")
                .first()
            )
        return _target_profile(profile) if profile is not None else None

    def load_profile(self, profile_id: str) -> TargetProfile | None:
        pk = _parse_profile_id(profile_id)
        if pk is None:
            return None
        with store_errors("DjangoApprovalStore.load_profile"):
            profile = Profile.objects.filter(pk=pk).only("id", "status", "graduation_year").first()
        return _target_profile(profile) if profile is not None else None

    def transition_pending_profile(
        self,
        *,
        profile_id: str,
        new_status: str,
        approver: str,
        decided_at: datetime.datetime,
    ) -> bool:
        pk = _parse_profile_id(profile_id)
        if pk is None:
            return False

        approved = new_status == Profile.Status.approved
        # Single conditional UPDATE; the status predicate is the race guard.
        with store_errors("DjangoApprovalStore.transition_pending_profile"):
            updated = Profile.objects.filter(pk=pk, status=Profile.Status.pending).update(
                status=new_status,
                is_approved=approved,
                approved_by_email=approver,
                approved_date=decided_at if approved else None,
                updated_at=decided_at,
            )
        return updated == 1

    def record_audit(
        self,
        *,
        profile_id: str,
        approver: str,
        membership_type: str | None,
        action: str,
        at: datetime.datetime,
    ) -> None:
        pk = _parse_profile_id(profile_id)
        if pk is None:
            raise ValueError(f"Invalid profile id {profile_id!r}")
        with store_errors("DjangoApprovalStore.record_audit"), transaction.atomic():
            ApprovalAudit.objects.create(
                profile_id=pk,
                approver_email=approver,
                membership_type=membership_type or "",
                action=action,
                created_at=at,
            )

    def _pending_queryset(self, years: YearFilter | None):
        queryset = Profile.objects.pending().filter(is_approved=False)
        if years is None:
            return queryset

        # Bounds are clamped to the column's value range.
        conditions = []
        for start, end in years.ranges:
            start, end = max(start, 0), min(end, _YEAR_COLUMN_MAX)
            if start <= end:
                conditions.append(Q(graduation_year__range=(start, end)))
        explicit = sorted(year for year in years.years if 0 <= year <= _YEAR_COLUMN_MAX)
        if explicit:
            conditions.append(Q(graduation_year__in=explicit))

        if not conditions:
            return queryset.none()
        return queryset.filter(reduce(operator.or_, conditions))

    def pending_profiles(self, *, years: YearFilter | None, limit: int) -> list[PendingProfile]:
        with store_errors("DjangoApprovalStore.pending_profiles"):
            rows = list(self._pending_queryset(years).order_by("created_at", "id")[:limit])
        return [
            PendingProfile(
                id=str(row.pk),
                full_name=row.full_name,
                graduation_year=row.graduation_year,
                branch=row.branch,
                company=row.company,
                designation=row.designation,
                avatar_url=row.avatar_url,
                status=row.status,
                is_approved=row.is_approved,
            )
            for row in rows
        ]

    def count_pending_profiles(self, *, years: YearFilter | None) -> int:
        with store_errors("DjangoApprovalStore.count_pending_profiles"):
            return self._pending_queryset(years).count()
