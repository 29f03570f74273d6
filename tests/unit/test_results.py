"""Unit tests for result extraction and placeholder detection."""

from __future__ import annotations

import json

from tweet_search.results import TweetView, extract_records, is_placeholder, partition_records

REAL = {"id": "1", "text": "hello", "user": {"username": "nasa"}, "created_at": "2024-01-01"}
MOCK = {"type": "mock_tweet", "id": -1, "text": "This is a mock tweet"}


class TestExtractRecords:
    """Result shapes to record lists."""

    def test_bare_list(self) -> None:
        assert extract_records([REAL]) == [REAL]

    def test_content_blocks_with_json_text(self) -> None:
        """MCP text blocks holding JSON are decoded and flattened."""
        result = {"content": [{"type": "text", "text": json.dumps([REAL, MOCK])}]}
        assert extract_records(result) == [REAL, MOCK]

    def test_content_block_with_object(self) -> None:
        result = {"content": [{"type": "text", "text": json.dumps(REAL)}]}
        assert extract_records(result) == [REAL]

    def test_plain_text_block_kept(self) -> None:
        """Text that is not JSON stays as the block itself."""
        block = {"type": "text", "text": "No results"}
        assert extract_records({"content": [block]}) == [block]

    def test_nested_result_list(self) -> None:
        assert extract_records({"result": [REAL]}) == [REAL]

    def test_unrecognized_shape(self) -> None:
        assert extract_records({"status": "done"}) is None
        assert extract_records("text") is None

    def test_wrap_scalar(self) -> None:
        assert extract_records({"status": "done"}, wrap_scalar=True) == [{"status": "done"}]
        assert extract_records(None, wrap_scalar=True) == []


class TestPlaceholders:
    """Telling real records from placeholder records."""

    def test_detection_rules(self) -> None:
        assert is_placeholder(MOCK)
        assert is_placeholder({"id": -1})
        assert is_placeholder({"text": "note: This is a mock tweet for testing"})
        assert not is_placeholder(REAL)
        assert not is_placeholder("string record")

    def test_partition(self) -> None:
        real, placeholders = partition_records([REAL, MOCK, "raw"])
        assert real == [REAL, "raw"]
        assert placeholders == [MOCK]


class TestTweetView:
    """Display fields."""

    def test_from_record(self) -> None:
        view = TweetView.from_record(
            {**REAL, "retweet_count": 3, "favorite_count": 7}
        )
        assert view.username == "nasa"
        assert view.retweets == 3
        assert view.likes == 7

    def test_alternate_field_names(self) -> None:
        view = TweetView.from_record(
            {
                "id": 9,
                "text": "hi",
                "author": {"userName": "bbc"},
                "createdAt": "Mon Jan 01",
                "retweetCount": 1,
                "likeCount": 2,
            }
        )
        assert view.id == "9"
        assert view.username == "bbc"
        assert view.created_at == "Mon Jan 01"
        assert (view.retweets, view.likes) == (1, 2)

    def test_missing_fields(self) -> None:
        view = TweetView.from_record({})
        assert view.username == "unknown"
        assert view.created_at == "unknown"
        assert view.retweets == 0

    def test_preview_truncates(self) -> None:
        view = TweetView.from_record({"text": "x" * 250})
        assert view.preview() == "x" * 200 + "..."
        assert TweetView.from_record({"text": "short"}).preview() == "short"
