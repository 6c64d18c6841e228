from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET

from core.memoirs import list_memoirs


def _page_number(raw: str | None) -> int:
    try:
        return max(1, int(str(raw or "1").strip()))
    except ValueError:
        return 1


@require_GET
def memoirs(request: HttpRequest) -> JsonResponse:
    result = list_memoirs(page=_page_number(request.GET.get("page")))
    return JsonResponse(
        {
            "memoirs": [memoir.as_dict() for memoir in result.items],
            "total": result.total,
            "page": result.page,
            "per_page": result.per_page,
        }
    )
