import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from core.approval_workflow import approve_pending_profile
from core.exceptions import ForbiddenError, InvalidInputError, InvalidStateError, NotFoundError
from core.pending_profiles import dashboard_summary, list_pending_for
from core.permissions import json_login_required, request_principal
from core.request_body import read_json_object

logger = logging.getLogger(__name__)


def _parse_approve_payload(request: HttpRequest) -> tuple[str, str]:
    if request.content_type and request.content_type.startswith("application/json"):
        data = read_json_object(request)
    else:
        data = request.POST

    profile_id = str(data.get("id") or data.get("profileId") or "").strip()
    action = str(data.get("action") or "").strip()
    if not profile_id or not action:
        raise InvalidInputError("Missing id or action")
    return profile_id, action


def _absolute_url(request: HttpRequest, url: str | None) -> str | None:
    if url and url.startswith("/"):
        return request.build_absolute_uri(url)
    return url


@require_POST
@json_login_required
def approve(request: HttpRequest) -> JsonResponse:
    principal = request_principal(request)

    try:
        profile_id, action = _parse_approve_payload(request)
        outcome = approve_pending_profile(principal=principal, profile_id=profile_id, action=action)
    except (InvalidInputError, ForbiddenError, NotFoundError, InvalidStateError) as exc:
        return JsonResponse({"error": exc.message}, status=exc.status_code)

    return JsonResponse({"message": outcome.message})


@require_GET
@json_login_required
def pending(request: HttpRequest) -> JsonResponse:
    principal = request_principal(request)

    rows = []
    for summary in list_pending_for(principal):
        row = summary.as_dict()
        row["avatar_public_url"] = _absolute_url(request, summary.avatar_public_url)
        rows.append(row)

    return JsonResponse({"pending": rows})


@require_GET
@json_login_required
def dashboard(request: HttpRequest) -> JsonResponse:
    principal = request_principal(request)
    return JsonResponse(dashboard_summary(principal).as_dict())
