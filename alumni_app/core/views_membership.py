import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from core.approval_authorization import ApprovalAuthorizer
from core.membership import toggle_admin_membership
from core.permissions import CORE_CHANGE_MEMBERMEMBERSHIP, json_login_required, json_permission_required, request_principal

logger = logging.getLogger(__name__)


@require_GET
@json_login_required
def membership_privileges(request: HttpRequest) -> JsonResponse:
    principal = request_principal(request)
    return JsonResponse({"privileges": ApprovalAuthorizer().privilege_summary(principal)})


@require_POST
@json_login_required
@json_permission_required(CORE_CHANGE_MEMBERMEMBERSHIP)
def membership_toggle(request: HttpRequest) -> JsonResponse:
    principal = request_principal(request)
    new_type = toggle_admin_membership(principal)
    return JsonResponse({"ok": True, "newType": new_type})
