"""Natural-language query classification.

Turns what a user typed into one of the three search operations:
- "from:nasa" or "@nasa"           -> tweets by user
- "... since:2024-01-01 ..."       -> raw advanced-search terms
- anything else                    -> free-text search
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .sdk import TweetSearchClient

USERNAME_PATTERN = re.compile(r"(?:from:|@)(\w+)", re.IGNORECASE)

LATEST = "Latest"


class SearchKind(str, Enum):
    """Search operation selected for a message."""

    USER = "user"
    TERMS = "terms"
    TEXT = "text"


@dataclass(frozen=True)
class SearchPlan:
    """A classified message."""

    kind: SearchKind
    text: str
    username: str | None = None
    terms: list[str] = field(default_factory=list)
    query_type: str | None = None

    def describe(self) -> str:
        if self.kind == SearchKind.USER:
            return f"Searching tweets from @{self.username}"
        if self.kind == SearchKind.TERMS:
            return "Using advanced search terms"
        return f"Searching for tweets containing: {self.text}"


def classify_query(message: str) -> SearchPlan:
    text = message.strip()
    lowered = text.lower()

    if "from:" in lowered or "@" in lowered:
        match = USERNAME_PATTERN.search(text)
        if match:
            return SearchPlan(
                kind=SearchKind.USER,
                text=text,
                username=match.group(1),
                query_type=LATEST,
            )
        return SearchPlan(kind=SearchKind.TEXT, text=text)

    if "since:" in lowered or "until:" in lowered:
        return SearchPlan(kind=SearchKind.TERMS, text=text, terms=[text])

    return SearchPlan(kind=SearchKind.TEXT, text=text, query_type=LATEST)


async def execute_plan(client: TweetSearchClient, plan: SearchPlan, *, max_items: int) -> Any:
    """Run a classified search through the client."""
    options: dict[str, Any] = {"maxItems": max_items}
    if plan.query_type:
        options["queryType"] = plan.query_type

    if plan.kind == SearchKind.USER and plan.username:
        return await client.search_tweets_by_user(plan.username, **options)
    if plan.kind == SearchKind.TERMS:
        return await client.search_tweets_by_terms(plan.terms, **options)
    return await client.search_tweets(plan.text, **options)
