"""Result extraction and presentation helpers.

The server returns tool results in several shapes (bare lists, MCP content
blocks, nested ``result`` lists, JSON encoded as text). These helpers
flatten them into tweet records and tell real records apart from the
placeholder records the scraper emits when it has nothing to return.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

PLACEHOLDER_TYPE = "mock_tweet"
PLACEHOLDER_TEXT = "This is a mock tweet"


class TweetView(BaseModel):
    """Display fields for one tweet record."""

    id: str
    username: str
    text: str
    created_at: str
    retweets: int = 0
    likes: int = 0

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> TweetView:
        user = record.get("user") if isinstance(record.get("user"), dict) else {}
        author = record.get("author") if isinstance(record.get("author"), dict) else {}
        return cls(
            id=str(record.get("id", "")),
            username=str(
                user.get("username")
                or record.get("username")
                or author.get("userName")
                or "unknown"
            ),
            text=str(record.get("text") or ""),
            created_at=str(record.get("created_at") or record.get("createdAt") or "unknown"),
            retweets=_count(record, "retweet_count", "retweetCount"),
            likes=_count(record, "favorite_count", "favoriteCount", "likeCount"),
        )

    def preview(self, max_len: int = 200) -> str:
        if len(self.text) <= max_len:
            return self.text
        return self.text[:max_len] + "..."


def extract_records(result: Any, *, wrap_scalar: bool = False) -> list[Any] | None:
    """Pull the list of records out of a tool result.

    Returns None when the result has no recognizable list, unless
    ``wrap_scalar`` is set, in which case a non-empty result is wrapped.
    """
    if isinstance(result, list):
        return _decode_text_blocks(result)
    if isinstance(result, dict):
        for key in ("content", "result"):
            value = result.get(key)
            if isinstance(value, list):
                return _decode_text_blocks(value)
    if wrap_scalar:
        return [result] if result else []
    return None


def is_placeholder(record: Any) -> bool:
    if not isinstance(record, dict):
        return False
    text = record.get("text")
    return (
        record.get("type") == PLACEHOLDER_TYPE
        or record.get("id") == -1
        or (isinstance(text, str) and PLACEHOLDER_TEXT in text)
    )


def partition_records(records: list[Any]) -> tuple[list[Any], list[Any]]:
    """Split records into (real, placeholder)."""
    real = [r for r in records if not is_placeholder(r)]
    placeholders = [r for r in records if is_placeholder(r)]
    return real, placeholders


def _decode_text_blocks(items: list[Any]) -> list[Any]:
    # MCP text blocks carrying JSON are expanded in place
    records: list[Any] = []
    for item in items:
        decoded = _decode_text_block(item)
        if isinstance(decoded, list):
            records.extend(decoded)
        elif decoded is not None:
            records.append(decoded)
        else:
            records.append(item)
    return records


def _decode_text_block(item: Any) -> Any:
    if not isinstance(item, dict) or item.get("type") != "text":
        return None
    text = item.get("text")
    if not isinstance(text, str):
        return None
    stripped = text.strip()
    if not stripped.startswith(("[", "{")):
        return None
    try:
        decoded = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    return decoded if isinstance(decoded, (list, dict)) else None


def _count(record: dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = record.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0
