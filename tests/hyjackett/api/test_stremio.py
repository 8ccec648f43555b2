from unittest import TestCase, mock

import pytest
from fastapi.testclient import TestClient

from hyjackett.main import app
from hyjackett.stremio import BehaviorHints, Stream, StreamResponse
from hyjackett.torrent import Category

pytestmark = pytest.mark.integration

INFO_HASH = "c9e15763f722f23e98a29decdfae341b98d53056"


@pytest.mark.integration
class TestManifest(TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_manifest(self):
        response = self.client.get("/manifest.json")
        self.assertEqual(200, response.status_code)
        manifest = response.json()
        self.assertEqual(manifest["resources"], ["stream"])
        self.assertEqual(manifest["types"], ["movie", "series"])
        self.assertEqual(manifest["idPrefixes"], ["tt"])
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")


@pytest.mark.integration
class TestListStreams(TestCase):
    def setUp(self):
        self.client = TestClient(app)

    @mock.patch("hyjackett.api.core.pipeline.search")
    def test_series_id_is_split(self, mock_search: mock.AsyncMock):
        mock_search.return_value = StreamResponse(
            streams=[
                Stream(
                    name="EZTV",
                    type=Category.Series,
                    infoHash=INFO_HASH,
                    fileIdx=3,
                    sources=[f"dht:{INFO_HASH}"],
                    title="Show",
                    behaviorHints=BehaviorHints(bingeGroup=f"HYJackett|{INFO_HASH}"),
                )
            ]
        )
        response = self.client.get("/stream/series/tt0108778:5:8.json")
        self.assertEqual(200, response.status_code)
        mock_search.assert_awaited_once_with(
            type=Category.Series,
            imdb_id="tt0108778",
            season_episode=[5, 8],
        )
        body = response.json()
        self.assertNotIn("error", body)
        self.assertEqual(body["streams"][0]["fileIdx"], 3)
        self.assertEqual(body["streams"][0]["behaviorHints"]["notWebReady"], True)

    @mock.patch("hyjackett.api.core.pipeline.search")
    def test_nothing_found_is_empty_list(self, mock_search: mock.AsyncMock):
        mock_search.return_value = StreamResponse(streams=[])
        response = self.client.get("/stream/movie/tt0111161.json")
        self.assertEqual(200, response.status_code)
        self.assertEqual(response.json(), {"streams": []})

    def test_rejects_unknown_type(self):
        response = self.client.get("/stream/channel/tt0111161.json")
        self.assertEqual(422, response.status_code)
