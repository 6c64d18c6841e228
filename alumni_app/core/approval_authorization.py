"""Who may approve or reject a pending alumni profile.

A principal's right to decide on a profile comes from the membership grants it
holds right now and the privileges those membership types carry:

- ``APPROVE_ONBOARD_ALL`` with execute rights allows every profile.
- ``APPROVE_ONBOARD_BATCH`` with execute rights allows profiles whose
  graduation year falls inside the scope of one of the principal's grants of
  that type (see ``core.grant_params``).
- When no batch grant covers the profile, a principal holding batch rights may
  still decide on profiles from its own graduation year (legacy behaviour).

``ApprovalAuthorizer.decide`` answers for a single profile and
``ApprovalAuthorizer.resolve_allowed_years`` answers for listings. Every year in
the listing answer is a year ``decide`` allows, and every year ``decide``
allows is in the listing answer.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from django.utils import timezone

from core.approval_store import (
    ApprovalStore,
    DjangoApprovalStore,
    MembershipGrant,
    PrivilegeEntry,
    YearFilter,
    normalize_principal,
)
from core.grant_params import YearRange, YearSet, coerce_year
from core.permissions import APPROVE_ONBOARD_ALL, APPROVE_ONBOARD_BATCH

logger = logging.getLogger(__name__)


class DenyReason(StrEnum):
    no_active_memberships = "no active memberships"
    no_approval_privileges = "no approval privileges"
    not_authorized_for_batch = "not authorized for this target's batch"


class DecisionBasis(StrEnum):
    unconditional = "unconditional"
    batch_grant = "batch_grant"
    legacy_graduation_year = "legacy_graduation_year"


@dataclass(frozen=True, slots=True)
class ApprovalDecision:
    allowed: bool
    basis: DecisionBasis | None = None
    # Membership type of the grant that justified an allow; audit metadata only.
    membership_type: str | None = None
    deny_reason: DenyReason | None = None

    @classmethod
    def allow(cls, *, basis: DecisionBasis, membership_type: str | None = None) -> ApprovalDecision:
        return cls(allowed=True, basis=basis, membership_type=membership_type)

    @classmethod
    def deny(cls, reason: DenyReason) -> ApprovalDecision:
        return cls(allowed=False, deny_reason=reason)


@dataclass(frozen=True, slots=True)
class AllowedYears:
    """Batch years a principal may act on, or every year.

    Ranges stay ranges: ``{"from": 1, "to": 100000}`` is one bound pair, never
    a materialised year set.
    """

    all_years: bool = False
    years: frozenset[int] = field(default_factory=frozenset)
    ranges: tuple[tuple[int, int], ...] = ()

    def __contains__(self, year: object) -> bool:
        if self.all_years:
            return True
        return coerce_year(year) in self.year_filter()

    @property
    def is_empty(self) -> bool:
        return not self.all_years and not self.years and not self.ranges

    def year_filter(self) -> YearFilter | None:
        """The store-side filter for these years; None selects every year."""
        if self.all_years:
            return None
        return YearFilter(years=self.years, ranges=self.ranges)


ALL_YEARS = AllowedYears(all_years=True)
NO_YEARS = AllowedYears()


@dataclass(frozen=True, slots=True)
class ResolvedPrivileges:
    grants: tuple[MembershipGrant, ...] = ()
    entries: tuple[PrivilegeEntry, ...] = ()

    def unconditional_entry(self) -> PrivilegeEntry | None:
        for entry in self.entries:
            if entry.privilege == APPROVE_ONBOARD_ALL and entry.execute:
                return entry
        return None

    def batch_membership_types(self) -> frozenset[str]:
        return frozenset(
            entry.membership_type
            for entry in self.entries
            if entry.privilege == APPROVE_ONBOARD_BATCH and entry.execute
        )

    def batch_grants(self) -> tuple[MembershipGrant, ...]:
        batch_types = self.batch_membership_types()
        return tuple(grant for grant in self.grants if grant.membership_type in batch_types)

    @property
    def can_approve(self) -> bool:
        return self.unconditional_entry() is not None or bool(self.batch_membership_types())


class ApprovalAuthorizer:
    def __init__(self, store: ApprovalStore | None = None) -> None:
        self.store: ApprovalStore = store if store is not None else DjangoApprovalStore()

    def resolve_active_memberships(
        self,
        principal: str,
        now: datetime.datetime | None = None,
    ) -> list[MembershipGrant]:
        normalized = normalize_principal(principal)
        if not normalized:
            return []
        at = timezone.now() if now is None else now
        return [grant for grant in self.store.grants_for_principal(normalized, at=at) if grant.is_active(at)]

    def resolve_privileges(self, membership_types: Iterable[str]) -> list[PrivilegeEntry]:
        types = frozenset(str(membership_type or "").strip() for membership_type in membership_types) - {""}
        if not types:
            return []
        return list(self.store.privileges_for_types(types))

    def resolve(self, principal: str, now: datetime.datetime | None = None) -> ResolvedPrivileges:
        grants = self.resolve_active_memberships(principal, now)
        if not grants:
            return ResolvedPrivileges()
        entries = self.resolve_privileges(grant.membership_type for grant in grants)
        return ResolvedPrivileges(grants=tuple(grants), entries=tuple(entries))

    def _own_graduation_year(self, principal: str) -> int | None:
        profile = self.store.principal_profile(normalize_principal(principal))
        if profile is None:
            return None
        return coerce_year(profile.graduation_year)

    def decide(
        self,
        principal: str,
        target_batch_year: int | None,
        now: datetime.datetime | None = None,
    ) -> ApprovalDecision:
        """Decide whether ``principal`` may act on a profile from ``target_batch_year``.

        The steps run in a fixed order and the first one that answers wins, so a
        principal qualifying several ways is always attributed the same way.
        """
        at = timezone.now() if now is None else now
        resolved = self.resolve(principal, at)

        if not resolved.grants:
            return self._denied(principal, target_batch_year, DenyReason.no_active_memberships)
        if not resolved.can_approve:
            return self._denied(principal, target_batch_year, DenyReason.no_approval_privileges)

        unconditional = resolved.unconditional_entry()
        if unconditional is not None:
            return ApprovalDecision.allow(
                basis=DecisionBasis.unconditional,
                membership_type=unconditional.membership_type,
            )

        target_year = coerce_year(target_batch_year)
        for grant in resolved.batch_grants():
            if grant.scope.contains(target_year):
                return ApprovalDecision.allow(
                    basis=DecisionBasis.batch_grant,
                    membership_type=grant.membership_type,
                )

        if target_year is not None and self._own_graduation_year(principal) == target_year:
            return ApprovalDecision.allow(basis=DecisionBasis.legacy_graduation_year)

        return self._denied(principal, target_batch_year, DenyReason.not_authorized_for_batch)

    def resolve_allowed_years(
        self,
        principal: str,
        now: datetime.datetime | None = None,
    ) -> AllowedYears:
        resolved = self.resolve(principal, now)
        if not resolved.grants or not resolved.can_approve:
            return NO_YEARS
        if resolved.unconditional_entry() is not None:
            return ALL_YEARS

        years: set[int] = set()
        ranges: set[tuple[int, int]] = set()
        for grant in resolved.batch_grants():
            scope = grant.scope
            if isinstance(scope, YearSet):
                years.update(scope.values)
            elif isinstance(scope, YearRange):
                ranges.add((scope.start, scope.end))

        # decide() falls back to the principal's own year whenever no batch
        # grant covers the target, so the listing has to carry it too.
        own_year = self._own_graduation_year(principal)
        if own_year is not None:
            years.add(own_year)

        return AllowedYears(years=frozenset(years), ranges=tuple(sorted(ranges)))

    def privilege_summary(
        self,
        principal: str,
        now: datetime.datetime | None = None,
    ) -> list[dict[str, object]]:
        """Privilege rows for the principal's active memberships.

        A principal may hold several active grants of one type. ``grant_params``
        lists the params of each of them in grant order, and ``params`` repeats
        the last one, the grant that started most recently.
        """
        resolved = self.resolve(principal, now)
        params_by_type: dict[str, list[object]] = {}
        for grant in resolved.grants:
            params_by_type.setdefault(grant.membership_type, []).append(grant.raw_params)

        return [
            {
                "membership_type": entry.membership_type,
                "privilege": entry.privilege,
                "view": entry.view,
                "edit": entry.edit,
                "execute": entry.execute,
                "params": params_by_type.get(entry.membership_type, [None])[-1],
                "grant_params": params_by_type.get(entry.membership_type, []),
            }
            for entry in resolved.entries
        ]

    def _denied(self, principal: str, target_batch_year: object, reason: DenyReason) -> ApprovalDecision:
        logger.info(
            "decide: denied principal=%r target_year=%r reason=%s",
            normalize_principal(principal),
            target_batch_year,
            reason.value,
        )
        return ApprovalDecision.deny(reason)
