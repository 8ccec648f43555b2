from unittest import TestCase, mock

import pytest
from fastapi.testclient import TestClient

from hyjackett import instrumentation
from hyjackett.main import app

pytestmark = pytest.mark.integration


def requests_served(route: str, status: str = "2xx") -> float:
    value = instrumentation.registry().get_sample_value(
        "request_duration_seconds_count",
        {"method": "GET", "route": route, "status": status},
    )
    return value or 0


@pytest.mark.integration
class TestMiddleware(TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_preflight_is_answered(self):
        response = self.client.options("/stream/movie/tt0111161.json")
        self.assertEqual(200, response.status_code)
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")
        self.assertEqual(response.headers["Access-Control-Allow-Methods"], "GET, OPTIONS")

    def test_request_id_is_echoed(self):
        response = self.client.get("/manifest.json", headers={"X-Request-ID": "abc-123"})
        self.assertEqual(response.headers["X-Request-ID"], "abc-123")
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")
        self.assertIn("X-Process-Time", response.headers)

    def test_request_id_is_generated(self):
        first = self.client.get("/manifest.json").headers["X-Request-ID"]
        second = self.client.get("/manifest.json").headers["X-Request-ID"]
        self.assertTrue(first)
        self.assertNotEqual(first, second)

    def test_metrics_are_labelled_by_route(self):
        before = requests_served("/manifest.json")
        self.client.get("/manifest.json")
        self.assertEqual(requests_served("/manifest.json"), before + 1)

    def test_unknown_urls_are_not_measured(self):
        response = self.client.get("/wp-login.php")
        self.assertEqual(404, response.status_code)
        self.assertEqual(requests_served("/wp-login.php", status="4xx"), 0)

    def test_metrics_endpoint(self):
        response = self.client.get("/metrics")
        self.assertEqual(200, response.status_code)
        self.assertIn("build_info", response.text)


@pytest.mark.integration
class TestLifespan(TestCase):
    @mock.patch("hyjackett.main.instrumentation.shutdown")
    def test_shutdown_on_exit(self, mock_shutdown: mock.MagicMock):
        with TestClient(app) as client:
            client.get("/manifest.json")
            mock_shutdown.assert_not_called()
        mock_shutdown.assert_called_once_with()


class TestShutdown(TestCase):
    @mock.patch("hyjackett.instrumentation.multiprocess.mark_process_dead")
    def test_single_process_is_a_noop(self, mock_dead: mock.MagicMock):
        with mock.patch.dict("os.environ", clear=False) as env:
            env.pop("PROMETHEUS_MULTIPROC_DIR", None)
            instrumentation.shutdown()
        mock_dead.assert_not_called()

    @mock.patch("hyjackett.instrumentation.multiprocess.mark_process_dead")
    def test_multiprocess_marks_worker_dead(self, mock_dead: mock.MagicMock):
        with mock.patch.dict("os.environ", {"PROMETHEUS_MULTIPROC_DIR": "/tmp/prom"}):
            instrumentation.shutdown()
        mock_dead.assert_called_once()
