import dataclasses
import datetime
import logging

from django.utils import timezone

from core.approval_authorization import ApprovalAuthorizer
from core.approval_store import ApprovalStore, DjangoApprovalStore, normalize_principal
from core.exceptions import ForbiddenError, InvalidInputError, InvalidStateError, NotFoundError
from core.models import ApprovalAudit, Profile

logger = logging.getLogger(__name__)

_STATUS_FOR_ACTION: dict[str, str] = {
    ApprovalAudit.Action.approve: Profile.Status.approved,
    ApprovalAudit.Action.reject: Profile.Status.rejected,
}

_SUCCESS_MESSAGES: dict[str, str] = {
    Profile.Status.approved: "Profile approved successfully",
    Profile.Status.rejected: "Profile rejected successfully",
}


@dataclasses.dataclass(frozen=True, slots=True)
class ApprovalOutcome:
    profile_id: str
    status: str
    action: str
    # None when the legacy graduation-year comparison justified the decision.
    membership_type: str | None

    @property
    def message(self) -> str:
        return _SUCCESS_MESSAGES[self.status]


def parse_approval_action(raw: object) -> str:
    action = str(raw or "").strip().upper()
    if action not in _STATUS_FOR_ACTION:
        raise InvalidInputError("Invalid action")
    return action


def _try_record_audit(
    *,
    store: ApprovalStore,
    profile_id: str,
    approver: str,
    membership_type: str | None,
    action: str,
    at: datetime.datetime,
) -> None:
    """Persist an audit entry, logging and swallowing failures."""
    try:
        store.record_audit(
            profile_id=profile_id,
            approver=approver,
            membership_type=membership_type,
            action=action,
            at=at,
        )
    except Exception:
        logger.exception(
            "approve_pending_profile: audit insert failed profile_id=%s approver=%s action=%s",
            profile_id,
            approver,
            action,
        )


def approve_pending_profile(
    *,
    principal: str,
    profile_id: str,
    action: str,
    now: datetime.datetime | None = None,
    store: ApprovalStore | None = None,
) -> ApprovalOutcome:
    """Approve or reject a pending profile on behalf of ``principal``.

    Checks run in order: the profile must exist, must still be pending, and the
    principal must be authorized for its batch. The transition itself is a
    conditional update, so a concurrent decision on the same profile makes this
    call fail with InvalidStateError instead of applying twice.

    The audit entry is written after the transition and is best-effort: a
    failed insert is logged and the decision stands.
    """
    approver = normalize_principal(principal)
    profile_key = str(profile_id or "").strip()
    action = parse_approval_action(action)
    if not profile_key:
        raise InvalidInputError("Missing profile id")

    store = store if store is not None else DjangoApprovalStore()
    at = timezone.now() if now is None else now

    target = store.load_profile(profile_key)
    if target is None:
        raise NotFoundError()
    if target.status != Profile.Status.pending:
        raise InvalidStateError()

    decision = ApprovalAuthorizer(store).decide(approver, target.graduation_year, at)
    if not decision.allowed:
        raise ForbiddenError()

    new_status = _STATUS_FOR_ACTION[action]
    transitioned = store.transition_pending_profile(
        profile_id=target.id,
        new_status=new_status,
        approver=approver,
        decided_at=at,
    )
    if not transitioned:
        logger.info(
            "approve_pending_profile: lost transition profile_id=%s approver=%s action=%s",
            target.id,
            approver,
            action,
        )
        raise InvalidStateError()

    logger.info(
        "approve_pending_profile: profile_id=%s approver=%s action=%s basis=%s membership_type=%s",
        target.id,
        approver,
        action,
        decision.basis,
        decision.membership_type,
    )

    _try_record_audit(
        store=store,
        profile_id=target.id,
        approver=approver,
        membership_type=decision.membership_type,
        action=action,
        at=at,
    )

    return ApprovalOutcome(
        profile_id=target.id,
        status=new_status,
        action=action,
        membership_type=decision.membership_type,
    )
