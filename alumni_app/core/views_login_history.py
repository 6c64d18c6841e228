from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_POST

from core.exceptions import InvalidInputError
from core.login_history import record_login_event, record_login_history
from core.request_body import read_json_object


def _event_identity(request: HttpRequest, data: dict[str, object]) -> tuple[object, object]:
    # A signed-in session always wins over identity fields in the body.
    # Anonymous callers are sign-out beacons sent after the session ended.
    user = request.user
    if user.is_authenticated:
        return str(user.pk), user.email
    return data.get("user_id"), data.get("user_email")


@require_POST
def log_event(request: HttpRequest) -> JsonResponse:
    try:
        data = read_json_object(request)
        user_id, user_email = _event_identity(request, data)
        result = record_login_event(action=data.get("action"), user_id=user_id, user_email=user_email)
    except InvalidInputError as exc:
        return JsonResponse({"error": exc.message}, status=exc.status_code)

    if result.skipped:
        return JsonResponse({"success": True, "skipped": True})
    return JsonResponse({"success": True, "skipped": False, "id": result.event_id}, status=201)


@require_POST
def login_history(request: HttpRequest) -> JsonResponse:
    try:
        data = read_json_object(request)
        user_id, user_email = _event_identity(request, data)
        record_login_history(
            action=data.get("action"),
            user_id=user_id,
            user_email=user_email,
            at=data.get("at"),
        )
    except InvalidInputError as exc:
        return JsonResponse({"ok": False, "error": exc.message}, status=exc.status_code)

    return JsonResponse({"ok": True})
