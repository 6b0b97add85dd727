"""
Unit tests for relay-based fetching.
"""
import httpx
import pytest

from novel_translator.core.crawl.proxy_fetcher import (
    ProxyFetcher, build_relay_url, decode_markup, validate_url
)
from novel_translator.core.exceptions import FetchFailure

RELAYS = [
    "https://relay-a.test/raw?url=",
    "https://relay-b.test/?",
    "https://relay-c.test/fetch/",
]
TARGET = "https://book.example.com/1.html?x=1"


class TestHelpers:
    """Tests for URL validation, relay URLs and decoding."""

    def test_validate_url_trims(self):
        assert validate_url("  https://a.example/b  ") == "https://a.example/b"

    @pytest.mark.parametrize("url", ["", "   ", "ftp://a/b", "example.com/page", "https://"])
    def test_validate_url_rejects(self, url):
        with pytest.raises(FetchFailure):
            validate_url(url)

    def test_build_relay_url_percent_encodes(self):
        assert build_relay_url(RELAYS[0], TARGET) == (
            "https://relay-a.test/raw?url=https%3A%2F%2Fbook.example.com%2F1.html%3Fx%3D1"
        )

    def test_decode_utf8_default(self):
        text, encoding = decode_markup("<p>风起</p>".encode("utf-8"))
        assert text == "<p>风起</p>"
        assert encoding == "utf-8"

    def test_decode_gbk_from_meta(self):
        markup = '<meta charset="gbk"><p>风起云涌</p>'
        text, encoding = decode_markup(markup.encode("gbk"))
        assert "风起云涌" in text
        assert encoding == "gbk"

    def test_decode_gb2312_from_header(self):
        text, encoding = decode_markup("<p>下一章</p>".encode("gb2312"), "text/html; charset=GB2312")
        assert text == "<p>下一章</p>"
        assert encoding == "gbk"


class TestProxyFetcher:
    """Tests for ProxyFetcher.fetch."""

    @pytest.mark.asyncio
    async def test_relays_tried_in_order_until_first_success(self, mock_client_factory):
        """Given A(fail), B(ok), C(ok), C is never invoked."""
        seen = []

        def handler(request):
            seen.append(request.url.host)
            if request.url.host == "relay-a.test":
                return httpx.Response(503, text="down")
            return httpx.Response(200, content="<p>ok</p>".encode("utf-8"))

        fetcher = ProxyFetcher(relays=RELAYS, client=mock_client_factory(handler))
        result = await fetcher.fetch(TARGET)

        assert seen == ["relay-a.test", "relay-b.test"]
        assert result.relay == RELAYS[1]
        assert result.text == "<p>ok</p>"

    @pytest.mark.asyncio
    async def test_transport_error_moves_to_next_relay(self, mock_client_factory):
        def handler(request):
            if request.url.host == "relay-a.test":
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, content=b"<p>fine</p>")

        fetcher = ProxyFetcher(relays=RELAYS, client=mock_client_factory(handler))
        result = await fetcher.fetch(TARGET)
        assert result.relay == RELAYS[1]

    @pytest.mark.asyncio
    async def test_all_relays_fail(self, mock_client_factory):
        calls = []

        def handler(request):
            calls.append(request.url.host)
            return httpx.Response(404)

        fetcher = ProxyFetcher(relays=RELAYS, client=mock_client_factory(handler))
        with pytest.raises(FetchFailure) as exc_info:
            await fetcher.fetch(TARGET)

        assert len(calls) == 3
        assert "relay-c.test" in exc_info.value.reason
        assert "404" in exc_info.value.reason
        assert exc_info.value.url == TARGET
        assert exc_info.value.recoverable

    @pytest.mark.asyncio
    async def test_invalid_url_makes_no_request(self, mock_client_factory):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        fetcher = ProxyFetcher(relays=RELAYS, client=mock_client_factory(handler))
        with pytest.raises(FetchFailure):
            await fetcher.fetch("not a url")
        assert calls == []

    @pytest.mark.asyncio
    async def test_gbk_page_decoded(self, mock_client_factory):
        body = '<html><head><meta http-equiv="Content-Type" content="text/html; charset=gbk"></head>' \
               '<body><h1>第1章 风起</h1></body></html>'

        def handler(request):
            return httpx.Response(200, content=body.encode("gbk"))

        fetcher = ProxyFetcher(relays=RELAYS, client=mock_client_factory(handler))
        result = await fetcher.fetch(TARGET)
        assert "第1章 风起" in result.text
        assert result.encoding == "gbk"

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self, mock_client_factory):
        client = mock_client_factory(lambda request: httpx.Response(200))
        fetcher = ProxyFetcher(relays=RELAYS, client=client)
        await fetcher.close()
        assert not client.is_closed

    def test_requires_relays(self):
        with pytest.raises(ValueError):
            ProxyFetcher(relays=[])
