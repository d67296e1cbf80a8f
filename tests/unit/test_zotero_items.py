"""Unit tests for the Zotero item sources."""

from __future__ import annotations

import json
from unittest.mock import Mock, patch

import pytest

from biblib.domain.errors import ZoteroAPIError
from biblib.infrastructure.adapters.zotero_items import JsonFileItemSource, PyzoteroItemSource

BOOK = {"key": "BOOK0001", "data": {"itemType": "book", "title": "Book", "collections": ["COLL1"]}}
ARTICLE = {"key": "ART00001", "data": {"itemType": "journalArticle", "title": "Article", "collections": []}}
PDF = {"key": "PDF00001", "data": {"itemType": "attachment", "title": "PDF"}}
NOTE = {"itemType": "note", "key": "NOTE0001"}


@pytest.fixture
def client():
    return Mock()


@pytest.fixture
def sleep():
    return Mock()


class TestPyzoteroItemSource:
    """Tests for the pyzotero-backed source."""

    def test_top_items_with_limit(self, clean_env, client, sleep):
        client.top.return_value = [BOOK, PDF, ARTICLE]
        source = PyzoteroItemSource({"local": True}, client=client, sleep=sleep)

        assert source.fetch_items(limit=2) == [BOOK, ARTICLE]
        client.top.assert_called_once_with(limit=2)
        sleep.assert_not_called()

    def test_all_items_use_everything(self, clean_env, client, sleep):
        client.everything.return_value = [BOOK, NOTE]
        source = PyzoteroItemSource({"local": True}, client=client, sleep=sleep)

        assert source.fetch_items() == [BOOK]
        client.everything.assert_called_once_with(client.top.return_value)

    def test_collection_items(self, clean_env, client, sleep):
        client.collection_items_top.return_value = [BOOK]
        source = PyzoteroItemSource({"local": True}, client=client, sleep=sleep)

        assert source.fetch_items(collection="COLL1", limit=5) == [BOOK]
        client.collection_items_top.assert_called_once_with("COLL1", limit=5)

    def test_all_collection_items(self, clean_env, client, sleep):
        client.everything.return_value = [BOOK]
        source = PyzoteroItemSource({"local": True}, client=client, sleep=sleep)

        source.fetch_items(collection="COLL1")
        client.collection_items_top.assert_called_once_with("COLL1")
        client.everything.assert_called_once_with(client.collection_items_top.return_value)

    def test_retry_with_backoff(self, clean_env, client, sleep):
        client.top.side_effect = [ConnectionError("reset"), [BOOK]]
        source = PyzoteroItemSource({"local": True}, client=client, sleep=sleep)

        assert source.fetch_items(limit=1) == [BOOK]
        sleep.assert_called_once_with(1.0)

    def test_gives_up_after_max_retries(self, clean_env, client, sleep):
        client.top.side_effect = ConnectionError("unreachable")
        source = PyzoteroItemSource({"local": True}, client=client, sleep=sleep)

        with pytest.raises(ZoteroAPIError) as exc_info:
            source.fetch_items(limit=1)

        assert exc_info.value.operation == "fetch_items"
        assert "unreachable" in exc_info.value.hint
        assert [call.args[0] for call in sleep.call_args_list] == [1.0, 2.0]
        assert client.top.call_count == PyzoteroItemSource.MAX_RETRIES

    def test_rate_limit_error_hint(self, clean_env, client, sleep):
        client.top.side_effect = Exception("Code 429: Too Many Requests")
        source = PyzoteroItemSource({"local": True}, client=client, sleep=sleep)

        with pytest.raises(ZoteroAPIError, match="rate limit"):
            source.fetch_items(limit=1)

    def test_web_api_requests_are_spaced(self, clean_env, client, sleep):
        client.top.return_value = [BOOK]
        source = PyzoteroItemSource({}, client=client, sleep=sleep)

        source.fetch_items(limit=1)
        source.fetch_items(limit=1)

        assert sleep.call_count == 1
        assert 0 < sleep.call_args.args[0] <= PyzoteroItemSource.MIN_REQUEST_INTERVAL

    def test_web_client_construction(self, clean_env):
        with patch("biblib.infrastructure.adapters.zotero_items.zotero.Zotero") as zotero_cls:
            PyzoteroItemSource({"library_id": "123", "library_type": "group", "api_key": "secret"})
        zotero_cls.assert_called_once_with("123", "group", "secret")

    def test_local_client_construction_from_environment(self, clean_env):
        clean_env.setenv("ZOTERO_LIBRARY_ID", "1")
        clean_env.setenv("ZOTERO_LOCAL", "true")
        with patch("biblib.infrastructure.adapters.zotero_items.zotero.Zotero") as zotero_cls:
            PyzoteroItemSource()
        zotero_cls.assert_called_once_with("1", "user", api_key=None, local=True)

    def test_missing_library_id(self, clean_env):
        with pytest.raises(ZoteroAPIError, match="ZOTERO_LIBRARY_ID"):
            PyzoteroItemSource({"api_key": "secret"})

    def test_missing_api_key_for_web_api(self, clean_env):
        with pytest.raises(ZoteroAPIError, match="ZOTERO_API_KEY"):
            PyzoteroItemSource({"library_id": "123"})


class TestJsonFileItemSource:
    """Tests for the JSON export source."""

    def test_list_export(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps([BOOK, PDF, ARTICLE, NOTE, "junk"]))

        assert JsonFileItemSource(path).fetch_items() == [BOOK, ARTICLE]

    def test_items_wrapper_collection_and_limit(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"items": [BOOK, ARTICLE]}))
        source = JsonFileItemSource(path)

        assert source.fetch_items(collection="COLL1") == [BOOK]
        assert source.fetch_items(limit=1) == [BOOK]

    def test_plain_items_collections(self, tmp_path):
        plain = {"itemType": "book", "key": "PLAIN001", "collections": ["COLL2"]}
        path = tmp_path / "export.json"
        path.write_text(json.dumps([plain]))

        assert JsonFileItemSource(path).fetch_items(collection="COLL2") == [plain]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ZoteroAPIError, match="Cannot read"):
            JsonFileItemSource(tmp_path / "missing.json").fetch_items()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text("{not json")
        with pytest.raises(ZoteroAPIError, match="not valid JSON"):
            JsonFileItemSource(path).fetch_items()

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"data": []}))
        with pytest.raises(ZoteroAPIError, match="list of items"):
            JsonFileItemSource(path).fetch_items()
