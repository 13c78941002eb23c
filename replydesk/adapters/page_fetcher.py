"""Fetcher for knowledge pages ingested by URL."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

import requests
from bs4 import BeautifulSoup

from replydesk.infra.logging_config import get_logger

logger = get_logger("page_fetcher")

USER_AGENT = "Mozilla/5.0 (compatible; replydesk-knowledge/1.0)"
DROPPED_TAGS = ["script", "style", "nav", "footer", "header", "aside", "noscript"]
_BLANK_LINES = re.compile(r"\n{3,}")


@dataclass
class PageFetchResult:
    """Visible text of a fetched page."""

    text: str = ""
    title: Optional[str] = None
    error: Optional[str] = None


def extract_visible_text(html: str) -> tuple[str, Optional[str]]:
    """Return (visible text, <title>) for an HTML document."""
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else None
    for tag in soup(DROPPED_TAGS):
        tag.decompose()
    main = soup.find("article") or soup.find("main") or soup.find("body") or soup
    text = main.get_text(separator="\n", strip=True)
    return _BLANK_LINES.sub("\n\n", text), title or None


class PageFetcher:
    """Downloads a URL and reduces it to readable text."""

    def __init__(self, timeout_seconds: int = 20) -> None:
        self._timeout_seconds = timeout_seconds

    def fetch(self, url: str) -> PageFetchResult:
        logger.info("Fetching knowledge page %s", url)
        try:
            resp = requests.get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout_seconds,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            return PageFetchResult(error=str(e))

        if resp.status_code != 200:
            return PageFetchResult(error=f"HTTP {resp.status_code} for {url}")

        content_type = resp.headers.get("content-type", "")
        if "text/plain" in content_type:
            return PageFetchResult(text=resp.text)

        text, title = extract_visible_text(resp.text)
        return PageFetchResult(text=text, title=title)
