from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from django.http import HttpRequest, HttpResponse, JsonResponse

from core.approval_store import normalize_principal
from core.exceptions import UnauthenticatedError

# Privilege names looked up in the membership privilege matrix.
APPROVE_ONBOARD_ALL = "APPROVE_ONBOARD_ALL"
APPROVE_ONBOARD_BATCH = "APPROVE_ONBOARD_BATCH"

APPROVAL_PRIVILEGES: frozenset[str] = frozenset({APPROVE_ONBOARD_ALL, APPROVE_ONBOARD_BATCH})

# Django permission guarding the administrative membership toggle.
CORE_CHANGE_MEMBERMEMBERSHIP = "core.change_membermembership"


P = ParamSpec("P")
R = TypeVar("R", bound=HttpResponse)


def request_principal(request: HttpRequest) -> str:
    """Return the authenticated caller's email, normalised.

    Raises UnauthenticatedError when there is no logged-in user or the user
    has no email address to act as a principal.
    """
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        raise UnauthenticatedError()
    principal = normalize_principal(getattr(user, "email", ""))
    if not principal:
        raise UnauthenticatedError()
    return principal


def json_login_required(view_func: Callable[P, R]) -> Callable[P, HttpResponse]:
    """Decorator for JSON endpoints that need an authenticated principal.

    Unauthenticated callers get a JSON 401 instead of a login redirect.
    """

    @wraps(view_func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> HttpResponse:
        request = args[0] if args else None
        if not isinstance(request, HttpRequest):
            return JsonResponse({"error": UnauthenticatedError.default_message}, status=401)

        try:
            request_principal(request)
        except UnauthenticatedError as exc:
            return JsonResponse({"error": exc.message}, status=exc.status_code)

        return view_func(*args, **kwargs)

    return wrapper


def json_permission_required(permission: str) -> Callable[[Callable[P, R]], Callable[P, HttpResponse]]:
    """Decorator for JSON endpoints that require a single Django permission.

    This returns a JSON 403 response instead of redirecting or rendering HTML.
    Stack it under ``json_login_required`` so anonymous callers get a 401.
    """

    def decorator(view_func: Callable[P, R]) -> Callable[P, HttpResponse]:
        @wraps(view_func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> HttpResponse:
            request = args[0] if args else None
            if not isinstance(request, HttpRequest):
                return JsonResponse({"error": "Permission denied."}, status=403)

            if not request.user.has_perm(permission):
                return JsonResponse({"error": "Permission denied."}, status=403)

            return view_func(*args, **kwargs)

        return wrapper

    return decorator
