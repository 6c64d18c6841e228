"""Liveness and readiness probes.

``/healthz`` only proves the process answers. ``/readyz`` runs the readiness
checks in order and stops at the first failure; later checks are reported as
skipped.
"""

import logging
from collections.abc import Callable

from django.db import DatabaseError, connection
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET

from core.models import MembershipPrivilege

logger = logging.getLogger(__name__)


def _check_database() -> None:
    connection.ensure_connection()


def _check_approval_tables() -> None:
    # Fails until migrations have created the privilege matrix.
    MembershipPrivilege.objects.exists()


READINESS_CHECKS: tuple[tuple[str, Callable[[], None]], ...] = (
    ("database", _check_database),
    ("approval_tables", _check_approval_tables),
)


@require_GET
def healthz(_request: HttpRequest) -> JsonResponse:
    return JsonResponse({"status": "ok"})


@require_GET
def readyz(_request: HttpRequest) -> JsonResponse:
    checks: dict[str, str] = {}
    failed = False
    for name, check in READINESS_CHECKS:
        if failed:
            checks[name] = "skipped"
            continue
        try:
            check()
        except DatabaseError:
            logger.exception("readyz: check %s failed", name)
            checks[name] = "unavailable"
            failed = True
        else:
            checks[name] = "ok"

    if failed:
        return JsonResponse({"status": "not ready", "checks": checks}, status=503)
    return JsonResponse({"status": "ready", "checks": checks})
