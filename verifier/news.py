"""
verifier/news.py — News signal provider.

Searches NewsAPI for coverage near a report and checks whether any of
the returned articles talk about flooding.
"""
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from verifier.errors import ProviderError
from verifier.signals import SignalResult, SignalStatus

logger = logging.getLogger(__name__)

SOURCE = "news"

DEFAULT_WINDOW = timedelta(days=3)

FLOOD_TERMS = ["flood", "water level", "rainfall", "evacuation", "rescue"]

# Broader vocabulary used to annotate articles with a relevance score
EXTENDED_FLOOD_TERMS = [
    "flood", "flooding", "flooded", "water level", "rising water",
    "heavy rain", "overflow", "evacuation", "submerged", "underwater",
    "rescue", "emergency",
]


class NewsSignalProvider:

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://newsapi.org/v2",
        timeout: float = 5,
        page_size: int = 5,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = page_size
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "NewsSignalProvider":
        return cls(
            api_key=config.get("NEWS_API_KEY"),
            base_url=config.get("NEWS_BASE_URL", "https://newsapi.org/v2"),
            timeout=config.get("NEWS_TIMEOUT", 5),
            page_size=config.get("NEWS_PAGE_SIZE", 5),
        )

    def get_signal(
        self,
        query: str,
        location: str,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> SignalResult:
        to_date = to_date or datetime.now(timezone.utc)
        from_date = from_date or to_date - DEFAULT_WINDOW
        try:
            articles = self.search(f"{query} {location}", from_date, to_date)
        except ProviderError as exc:
            logger.error("News verification failed: %s", exc.message)
            return SignalResult.error(SOURCE, exc.message)
        return classify(articles, location)

    def search(self, q: str, from_date: datetime, to_date: datetime) -> List[Dict[str, Any]]:
        if not self.api_key:
            raise ProviderError(SOURCE, "news API key not configured")

        try:
            resp = self.session.get(
                f"{self.base_url}/everything",
                params={
                    "q": q,
                    "language": "en",
                    "from": from_date.isoformat(),
                    "to": to_date.isoformat(),
                    "sortBy": "relevancy",
                    "pageSize": self.page_size,
                    "apiKey": self.api_key,
                },
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.Timeout as exc:
            raise ProviderError(SOURCE, f"request timed out after {self.timeout}s", exc)
        except requests.RequestException as exc:
            raise ProviderError(SOURCE, f"request failed: {exc}", exc)
        except ValueError as exc:
            raise ProviderError(SOURCE, f"malformed response: {exc}", exc)

        raw = payload.get("articles") if isinstance(payload, dict) else None
        if not isinstance(raw, list):
            raise ProviderError(SOURCE, "malformed response: no article list")

        return [_normalize_article(a) for a in raw if isinstance(a, dict)]


def _normalize_article(article: Dict[str, Any]) -> Dict[str, Any]:
    source = article.get("source") or {}
    return {
        "source": source.get("name") if isinstance(source, dict) else source,
        "author": article.get("author"),
        "title": article.get("title") or "",
        "description": article.get("description") or "",
        "url": article.get("url"),
        "publishedAt": article.get("publishedAt"),
    }


def mentions_flooding(article: Dict[str, Any]) -> bool:
    text = f"{article.get('title') or ''} {article.get('description') or ''}".lower()
    return any(term in text for term in FLOOD_TERMS)


def extract_flood_information(text: str) -> Dict[str, Any]:
    """Count flood-related terms in free text and derive a 0-1 relevance."""
    count = 0
    for term in EXTENDED_FLOOD_TERMS:
        count += len(re.findall(re.escape(term), text or "", flags=re.IGNORECASE))
    return {
        "floodMentioned": count > 0,
        "floodTermCount": count,
        "relevanceScore": min(count / 5, 1),
    }


def classify(articles: List[Dict[str, Any]], location: str = "") -> SignalResult:
    if not articles:
        return SignalResult(
            SignalStatus.NOT_MATCHED,
            "No relevant news found for this location",
            {"articles": []},
        )

    annotated = [
        {**a, "floodInfo": extract_flood_information(f"{a.get('title')} {a.get('description')}")}
        for a in articles
    ]
    snapshot = {"articles": annotated}
    flood_mentions = [a for a in articles if mentions_flooding(a)]

    if not flood_mentions:
        return SignalResult(
            SignalStatus.NOT_MATCHED,
            "Found news articles for the area but none mention flooding",
            snapshot,
        )
    where = f" in {location}" if location else ""
    return SignalResult(
        SignalStatus.MATCHED,
        f"Found {len(flood_mentions)} news articles mentioning flooding{where}",
        snapshot,
    )
