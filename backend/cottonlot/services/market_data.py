"""Live market values: the Cotlook A Index and the USD exchange rate.

Both are scraped from public HTML pages.  Fetchers never raise: any network
or parse failure is logged and the configured fallback is returned, so a
caller can always proceed with pricing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup

from cottonlot.config import settings

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

LIVE = "live"
FALLBACK = "fallback"


@dataclass(frozen=True)
class MarketValue:
    value: float
    source: str  # live | fallback
    origin: str | None = None  # URL the live value came from
    error: str | None = None  # why the fallback was used


def market_defaults() -> dict[str, float]:
    """Fallback constants, available without any network access."""
    return {
        "market_quotation": settings.fallback_quotation,
        "exchange_rate": settings.fallback_exchange_rate,
    }


def _to_float(text: str) -> float:
    return float(text.replace(",", "."))


class HtmlSource:
    """Base class for a scraped value tried against several URLs in order."""

    name = "value"

    def __init__(self, urls: list[str], fallback: float, timeout: float = 15.0) -> None:
        self.urls = list(urls)
        self.fallback = fallback
        self.timeout = timeout

    async def _fetch_html(self, url: str) -> str:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "ru-RU,ru;q=0.8,en-US;q=0.5,en;q=0.3",
            "Cache-Control": "no-cache",
        }
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            resp = await client.get(url, headers=headers)
            resp.raise_for_status()
            return resp.text

    @classmethod
    def _parse(cls, html: str) -> float | None:
        raise NotImplementedError

    async def fetch(self) -> MarketValue:
        errors: list[str] = []
        for url in self.urls:
            try:
                html = await self._fetch_html(url)
                value = self._parse(html)
            except (httpx.HTTPError, LookupError, ValueError) as exc:
                logger.warning("Fetching %s from %s failed: %s", self.name, url, exc)
                errors.append(f"{url}: {exc}")
                continue
            if value is None:
                logger.warning("No %s found on %s", self.name, url)
                errors.append(f"{url}: no {self.name} found")
                continue
            logger.info("Fetched %s %.4f from %s", self.name, value, url)
            return MarketValue(value=value, source=LIVE, origin=url)

        logger.warning("Using fallback %s %.4f", self.name, self.fallback)
        return MarketValue(
            value=self.fallback,
            source=FALLBACK,
            error="; ".join(errors) or "no sources configured",
        )


class CottonIndexSource(HtmlSource):
    """Cotlook A Index in US cents per pound."""

    name = "A Index"

    INDEX_SELECTORS = ".cotlook-index, .index-value, .a-index, .cotton-price, .market-data"
    NUMBER_RE = re.compile(r"(\d+\.\d+)")
    PAGE_RE = re.compile(r"(?:Cotlook |Cotton )?A Index[:\s]*(\d+\.\d+)", re.IGNORECASE)

    @classmethod
    def _parse(cls, html: str) -> float | None:
        soup = BeautifulSoup(html, "html.parser")

        for elem in soup.select(cls.INDEX_SELECTORS):
            text = elem.get_text(" ", strip=True)
            if "A Index" in text:
                match = cls.NUMBER_RE.search(text)
                if match:
                    return float(match.group(1))

        body = soup.body or soup
        match = cls.PAGE_RE.search(body.get_text(" "))
        return float(match.group(1)) if match else None


class ExchangeRateSource(HtmlSource):
    """Official USD rate in national currency units."""

    name = "USD exchange rate"

    DOLLAR_MARKERS = ("USD", "Доллар", "доллар")
    BLOCK_SELECTORS = ".currency, .exchange-rate, .kurs, .course, .valute"
    NUMBER_RE = re.compile(r"(\d+[.,]\d+)")
    PAGE_RES = (
        re.compile(r"USD[:\s]*(\d+[.,]\d+)", re.IGNORECASE),
        re.compile(r"Доллар США[:\s]*(\d+[.,]\d+)", re.IGNORECASE),
        re.compile(r"доллар[:\s]*(\d+[.,]\d+)", re.IGNORECASE),
        re.compile(r"\$[:\s]*(\d+[.,]\d+)"),
    )

    @classmethod
    def _mentions_dollar(cls, text: str) -> bool:
        return any(marker in text for marker in cls.DOLLAR_MARKERS)

    @classmethod
    def _parse(cls, html: str) -> float | None:
        soup = BeautifulSoup(html, "html.parser")

        # Table rows: row text first, then its cells
        for row in soup.select("table tr"):
            text = row.get_text(" ", strip=True)
            if not cls._mentions_dollar(text):
                continue
            match = cls.NUMBER_RE.search(text)
            if match:
                return _to_float(match.group(1))
            for cell in row.find_all("td"):
                match = cls.NUMBER_RE.search(cell.get_text(strip=True))
                if match:
                    return _to_float(match.group(1))

        for block in soup.select(cls.BLOCK_SELECTORS):
            text = block.get_text(" ", strip=True)
            if cls._mentions_dollar(text):
                match = cls.NUMBER_RE.search(text)
                if match:
                    return _to_float(match.group(1))

        page_text = (soup.body or soup).get_text(" ")
        for pattern in cls.PAGE_RES:
            match = pattern.search(page_text)
            if match:
                return _to_float(match.group(1))
        return None


def cotton_index_source() -> CottonIndexSource:
    return CottonIndexSource(
        settings.quotation_source_urls,
        fallback=settings.fallback_quotation,
        timeout=settings.market_fetch_timeout,
    )


def exchange_rate_source() -> ExchangeRateSource:
    return ExchangeRateSource(
        settings.exchange_rate_source_urls,
        fallback=settings.fallback_exchange_rate,
        timeout=settings.market_fetch_timeout,
    )


async def get_cotton_index() -> MarketValue:
    return await cotton_index_source().fetch()


async def get_exchange_rate() -> MarketValue:
    return await exchange_rate_source().fetch()
