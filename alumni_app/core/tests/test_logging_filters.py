import logging

from django.test import SimpleTestCase

from config.logging_filters import HealthEndpointFilter


def _record(name: str, msg: str, args: object) -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


def _runserver(request_line: str, status: str) -> logging.LogRecord:
    return _record("django.server", '"%s" %s %s', (request_line, status, "16"))


def _gunicorn(path: str, status: str) -> logging.LogRecord:
    # gunicorn passes its access atoms as a single mapping argument.
    return _record("gunicorn.access", '%(h)s "%(r)s" %(s)s', ({"h": "10.0.0.1", "r": f"GET {path} HTTP/1.1", "U": path, "s": status},))


class HealthEndpointFilterTests(SimpleTestCase):
    def setUp(self) -> None:
        self.filt = HealthEndpointFilter()

    def test_drops_successful_probes(self) -> None:
        self.assertFalse(self.filt.filter(_runserver("GET /healthz HTTP/1.1", "200")))
        self.assertFalse(self.filt.filter(_runserver("GET /readyz?verbose=1 HTTP/1.1", "200")))
        self.assertFalse(self.filt.filter(_gunicorn("/readyz", "200")))

    def test_keeps_failed_probes(self) -> None:
        self.assertTrue(self.filt.filter(_runserver("GET /readyz HTTP/1.1", "503")))
        self.assertTrue(self.filt.filter(_gunicorn("/readyz", "503")))

    def test_keeps_other_paths(self) -> None:
        self.assertTrue(self.filt.filter(_runserver("GET /api/pending HTTP/1.1", "200")))
        self.assertTrue(self.filt.filter(_runserver("GET /healthz-report HTTP/1.1", "200")))
        self.assertTrue(self.filt.filter(_gunicorn("/api/approve", "200")))

    def test_keeps_lines_that_are_not_requests(self) -> None:
        self.assertTrue(self.filt.filter(_record("django.server", "Watching for file changes", ())))
