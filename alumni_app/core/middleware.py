import logging

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


class StoreUnavailableMiddleware(MiddlewareMixin):
    """Answer with a JSON 500 when the data store fails mid-request."""

    def process_exception(self, request, exception):
        if not isinstance(exception, StoreUnavailableError):
            return None

        logger.warning("Data store unavailable during request path=%s", request.path, exc_info=False)
        return JsonResponse({"error": exception.message}, status=exception.status_code)
