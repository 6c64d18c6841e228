"""Sign-in history: event logging with a short duplicate window.

Clients report auth events from the browser, often more than once per event
(tab focus, token refresh). ``record_login_event`` collapses repeats of the
same action by the same user inside ``LOGIN_EVENT_DEDUPE_SECONDS``;
``record_login_history`` always inserts.
"""

import dataclasses
import datetime
import logging

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from core.approval_store import normalize_principal, store_errors
from core.exceptions import InvalidInputError
from core.models import LoginEvent

logger = logging.getLogger(__name__)

_HISTORY_ACTIONS = frozenset({LoginEvent.Action.sign_in, LoginEvent.Action.sign_out})


@dataclasses.dataclass(frozen=True, slots=True)
class LoginEventResult:
    skipped: bool
    event_id: int | None = None


def _parse_action(raw: object, allowed: frozenset[str], message: str) -> str:
    action = str(raw or "").strip()
    if action not in allowed:
        raise InvalidInputError(message)
    return action


def parse_event_time(raw: object) -> datetime.datetime | None:
    """Parse an optional ISO-8601 timestamp; naive values are taken as UTC."""
    if raw in (None, ""):
        return None
    try:
        parsed = parse_datetime(str(raw).strip())
    except ValueError as exc:
        raise InvalidInputError("Invalid timestamp") from exc
    if parsed is None:
        raise InvalidInputError("Invalid timestamp")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, datetime.UTC)
    return parsed


def dedupe_window() -> datetime.timedelta:
    return datetime.timedelta(seconds=settings.LOGIN_EVENT_DEDUPE_SECONDS)


def record_login_event(
    *,
    action: object,
    user_id: object = None,
    user_email: object = None,
    now: datetime.datetime | None = None,
) -> LoginEventResult:
    """Insert a login event unless the same one was recorded moments ago.

    The duplicate check is keyed on ``user_id`` when present, otherwise on
    ``user_email``. Events carrying neither are always inserted.
    """
    action = _parse_action(action, frozenset(LoginEvent.Action.values), "Invalid or missing action")
    user_id = str(user_id or "").strip()
    user_email = normalize_principal(user_email)
    now = timezone.now() if now is None else now

    with store_errors("record_login_event"):
        recent = LoginEvent.objects.filter(action=action, created_at__gte=now - dedupe_window())
        if user_id:
            recent = recent.filter(user_id=user_id)
        elif user_email:
            recent = recent.filter(user_email=user_email)
        else:
            recent = None

        if recent is not None and recent.exists():
            logger.debug(
                "record_login_event: duplicate skipped action=%s user_id=%s user_email=%s",
                action,
                user_id,
                user_email,
            )
            return LoginEventResult(skipped=True)

        event = LoginEvent.objects.create(
            user_id=user_id,
            user_email=user_email,
            action=action,
            created_at=now,
        )

    logger.info("record_login_event: action=%s user_id=%s event_id=%s", action, user_id, event.pk)
    return LoginEventResult(skipped=False, event_id=event.pk)


def record_login_history(
    *,
    action: object,
    user_id: object,
    user_email: object = None,
    at: object = None,
) -> LoginEvent:
    """Insert a sign-in or sign-out row for ``user_id``, at ``at`` or now."""
    action = _parse_action(action, _HISTORY_ACTIONS, "Invalid action")
    user_id = str(user_id or "").strip()
    if not user_id:
        raise InvalidInputError("user_id required")
    created_at = parse_event_time(at) or timezone.now()

    with store_errors("record_login_history"):
        return LoginEvent.objects.create(
            user_id=user_id,
            user_email=normalize_principal(user_email),
            action=action,
            created_at=created_at,
        )
