"""Market data fetcher tests.

Network access is never used: ``_fetch_html`` is replaced per test.
"""

import httpx
import pytest
from httpx import AsyncClient

from cottonlot.services.market_data import (
    CottonIndexSource,
    ExchangeRateSource,
    MarketValue,
    market_defaults,
)

COTLOOK_HTML = """
<html><body>
  <div class="sidebar"><div class="index-value">Cotlook A Index: 78.35 cents/lb</div></div>
</body></html>
"""

COTLOOK_TEXT_HTML = """
<html><body><p>Today's Cotlook A Index 81.20 (down 0.45)</p></body></html>
"""

NBT_TABLE_HTML = """
<html><body>
  <table>
    <tr><th>Code</th><th>Currency</th><th>Rate</th></tr>
    <tr><td>840</td><td>Доллар США</td><td>10,9436</td></tr>
    <tr><td>978</td><td>Евро</td><td>11,8812</td></tr>
  </table>
</body></html>
"""

NBT_BLOCK_HTML = """
<html><body><div class="kurs"><span>USD</span> <b>10.95</b></div></body></html>
"""

NBT_TEXT_HTML = """
<html><body><p>Официальный курс: доллар 10,97</p></body></html>
"""


def _pages(mapping: dict):
    async def fake_fetch(self, url):
        page = mapping[url]
        if isinstance(page, Exception):
            raise page
        return page
    return fake_fetch


@pytest.mark.market
class TestParsers:

    def test_index_from_selector(self):
        assert CottonIndexSource._parse(COTLOOK_HTML) == pytest.approx(78.35)

    def test_index_from_page_text(self):
        assert CottonIndexSource._parse(COTLOOK_TEXT_HTML) == pytest.approx(81.20)

    def test_index_missing(self):
        assert CottonIndexSource._parse("<html><body>No prices today</body></html>") is None

    def test_rate_from_table_row(self):
        assert ExchangeRateSource._parse(NBT_TABLE_HTML) == pytest.approx(10.9436)

    def test_rate_from_currency_block(self):
        assert ExchangeRateSource._parse(NBT_BLOCK_HTML) == pytest.approx(10.95)

    def test_rate_from_page_text(self):
        assert ExchangeRateSource._parse(NBT_TEXT_HTML) == pytest.approx(10.97)

    def test_rate_missing(self):
        assert ExchangeRateSource._parse("<html><body><table><tr><td>EUR 11,88</td></tr></table></body></html>") is None


@pytest.mark.market
@pytest.mark.asyncio
class TestFetchers:

    async def test_live_index(self, monkeypatch):
        monkeypatch.setattr(CottonIndexSource, "_fetch_html", _pages({"a": COTLOOK_HTML}))
        value = await CottonIndexSource(["a"], fallback=80.0).fetch()
        assert value == MarketValue(value=78.35, source="live", origin="a")

    async def test_second_source_used_after_network_error(self, monkeypatch):
        pages = {
            "a": httpx.ConnectError("connection refused"),
            "b": COTLOOK_TEXT_HTML,
        }
        monkeypatch.setattr(CottonIndexSource, "_fetch_html", _pages(pages))
        value = await CottonIndexSource(["a", "b"], fallback=80.0).fetch()
        assert value.source == "live"
        assert value.origin == "b"
        assert value.value == pytest.approx(81.20)

    async def test_index_fallback(self, monkeypatch):
        pages = {
            "a": httpx.ConnectError("connection refused"),
            "b": "<html><body>maintenance</body></html>",
        }
        monkeypatch.setattr(CottonIndexSource, "_fetch_html", _pages(pages))
        value = await CottonIndexSource(["a", "b"], fallback=80.0).fetch()
        assert value.value == 80.0
        assert value.source == "fallback"
        assert "connection refused" in value.error

    async def test_rate_fallback_on_http_status(self, monkeypatch):
        request = httpx.Request("GET", "https://nbt.example/")
        error = httpx.HTTPStatusError(
            "503", request=request, response=httpx.Response(503, request=request)
        )
        monkeypatch.setattr(ExchangeRateSource, "_fetch_html", _pages({"a": error}))
        value = await ExchangeRateSource(["a"], fallback=11.3).fetch()
        assert value.value == 11.3
        assert value.source == "fallback"

    async def test_live_rate(self, monkeypatch):
        monkeypatch.setattr(ExchangeRateSource, "_fetch_html", _pages({"a": NBT_TABLE_HTML}))
        value = await ExchangeRateSource(["a"], fallback=11.3).fetch()
        assert value.source == "live"
        assert value.value == pytest.approx(10.9436)


@pytest.mark.market
@pytest.mark.api
@pytest.mark.asyncio
class TestMarketEndpoints:

    async def test_defaults(self, client: AsyncClient):
        resp = await client.get("/api/market/defaults")
        assert resp.status_code == 200
        assert resp.json() == market_defaults() == {"market_quotation": 80.0, "exchange_rate": 11.3}

    async def test_quotation_falls_back(self, client: AsyncClient, monkeypatch):
        async def offline(self, url):
            raise httpx.ConnectError("offline")

        monkeypatch.setattr(CottonIndexSource, "_fetch_html", offline)
        resp = await client.get("/api/market/quotation")
        assert resp.status_code == 200
        assert resp.json()["value"] == 80.0
        assert resp.json()["source"] == "fallback"

    async def test_exchange_rate_live(self, client: AsyncClient, monkeypatch):
        async def page(self, url):
            return NBT_TABLE_HTML

        monkeypatch.setattr(ExchangeRateSource, "_fetch_html", page)
        resp = await client.get("/api/market/exchange-rate")
        assert resp.json()["source"] == "live"
        assert resp.json()["value"] == pytest.approx(10.9436)

    async def test_grade_table(self, client: AsyncClient):
        resp = await client.get("/api/market/grades")
        data = resp.json()
        assert data["color_grades"] == ["SM", "MID", "SLM"]
        assert len(data["entries"]) == 126
        entry = next(
            e for e in data["entries"]
            if (e["color_grade"], e["leaf_grade"], e["staple_length"]) == ("SM", 1, 34)
        )
        assert entry["premium_discount"] == pytest.approx(4.05)
