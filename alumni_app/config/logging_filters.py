import logging
import re
from collections.abc import Mapping

PROBE_PATHS: frozenset[str] = frozenset({"/healthz", "/readyz"})

# django.server lines look like: "GET /readyz HTTP/1.1" 200 37
_REQUEST_LINE = re.compile(r'"[A-Z]+ (?P<path>[^ ?"]+)[^"]*" (?P<status>\d{3})\b')


def _path_and_status(record: logging.LogRecord) -> tuple[str, str] | None:
    if isinstance(record.args, Mapping):
        # gunicorn access records carry their atoms: U is the path, s the status.
        return str(record.args.get("U", "")), str(record.args.get("s", ""))
    match = _REQUEST_LINE.search(record.getMessage())
    if match is None:
        return None
    return match["path"], match["status"]


class HealthEndpointFilter(logging.Filter):
    """Drop access-log lines for probe requests that answered 2xx.

    Failed probes are kept so an unready instance still shows up in the logs.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        request = _path_and_status(record)
        if request is None:
            return True
        path, status = request
        return not (path in PROBE_PATHS and status.startswith("2"))
