from __future__ import annotations

import io
from pathlib import Path
from typing import ClassVar

import httpx
import pytest

from caniemail import http
from caniemail.exceptions import (
    ContentError,
    DatasetError,
    ExportError,
    HttpStatusError,
    InvalidInputError,
    NetworkError,
    RequestTimeoutError,
)
from caniemail.source import http_url, load_source, looks_like_inline_html


class _FakeClient:
    plans: ClassVar[list[object]] = []
    seen_urls: ClassVar[list[str]] = []
    seen_headers: ClassVar[list[dict[str, str]]] = []

    def __init__(self, **kwargs: object) -> None:
        headers = kwargs.get("headers")
        _FakeClient.seen_headers.append(dict(headers) if isinstance(headers, dict) else {})

    def __enter__(self) -> _FakeClient:
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: object | None,
    ) -> None:
        return None

    def get(self, url: str) -> httpx.Response:
        _FakeClient.seen_urls.append(url)
        plan = _FakeClient.plans.pop(0)
        if isinstance(plan, Exception):
            raise plan
        if isinstance(plan, tuple):
            status_code, text = plan
            return httpx.Response(status_code, text=text, request=httpx.Request("GET", url))
        raise AssertionError


def _reset_plans(*plans: object) -> None:
    _FakeClient.plans = list(plans)
    _FakeClient.seen_urls = []
    _FakeClient.seen_headers = []


URL = "https://example.com/newsletter.html"


def test_exception_messages() -> None:
    assert "Unable to fetch HTML" in str(NetworkError(URL))
    assert "Boom" in str(NetworkError(URL, cause="Boom"))
    assert "timed out" in str(RequestTimeoutError(URL))
    assert "HTTP 503" in str(HttpStatusError(503, URL))
    assert "empty HTML" in str(ContentError(URL))
    assert "dataset" in str(DatasetError("db.json", cause="invalid JSON"))
    assert "reports" in str(ExportError("reports"))
    assert isinstance(InvalidInputError("bad"), ValueError)


def test_fetch_success_sends_user_agent(monkeypatch: pytest.MonkeyPatch) -> None:
    _reset_plans((200, "<table></table>"))
    monkeypatch.setattr(http.httpx, "Client", _FakeClient)

    assert http.fetch_remote_html(URL) == "<table></table>"
    assert _FakeClient.seen_urls == [URL]
    assert _FakeClient.seen_headers[0]["User-Agent"].startswith("pycaniemail/")


def test_fetch_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    _reset_plans(httpx.TimeoutException("slow"))
    monkeypatch.setattr(http.httpx, "Client", _FakeClient)

    with pytest.raises(RequestTimeoutError):
        http.fetch_remote_html(URL)


def test_fetch_connect_retry_then_success(monkeypatch: pytest.MonkeyPatch) -> None:
    connect_exc = httpx.ConnectError("conn", request=httpx.Request("GET", URL))
    _reset_plans(connect_exc, (200, "<p>retried</p>"))
    monkeypatch.setattr(http.httpx, "Client", _FakeClient)

    assert http.fetch_remote_html(URL) == "<p>retried</p>"
    assert len(_FakeClient.seen_urls) == 2


def test_fetch_connect_retry_then_fail(monkeypatch: pytest.MonkeyPatch) -> None:
    connect_exc = httpx.ConnectError("conn", request=httpx.Request("GET", URL))
    _reset_plans(connect_exc, connect_exc)
    monkeypatch.setattr(http.httpx, "Client", _FakeClient)

    with pytest.raises(NetworkError, match="ConnectError"):
        http.fetch_remote_html(URL)


def test_fetch_request_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _reset_plans(httpx.RequestError("bad", request=httpx.Request("GET", URL)))
    monkeypatch.setattr(http.httpx, "Client", _FakeClient)

    with pytest.raises(NetworkError):
        http.fetch_remote_html(URL)


def test_fetch_error_status(monkeypatch: pytest.MonkeyPatch) -> None:
    _reset_plans((404, "missing"))
    monkeypatch.setattr(http.httpx, "Client", _FakeClient)

    with pytest.raises(HttpStatusError) as excinfo:
        http.fetch_remote_html(URL)
    assert excinfo.value.status_code == 404


def test_fetch_empty_content(monkeypatch: pytest.MonkeyPatch) -> None:
    _reset_plans((200, "   "))
    monkeypatch.setattr(http.httpx, "Client", _FakeClient)

    with pytest.raises(ContentError):
        http.fetch_remote_html(URL)


def test_source_helpers() -> None:
    assert looks_like_inline_html("  <table>")
    assert not looks_like_inline_html("template.html")
    assert http_url(f"  {URL} ") == URL
    assert http_url("ftp://example.com/a.html") is None
    assert http_url("https://") is None


def test_load_source_inline() -> None:
    assert load_source("<p>hi</p>") == "<p>hi</p>"


def test_load_source_stdin() -> None:
    assert load_source(None, stdin=io.StringIO("<b>x</b>")) == "<b>x</b>"
    assert load_source("-", stdin=io.StringIO("<i>y</i>")) == "<i>y</i>"


def test_load_source_file(tmp_path: Path) -> None:
    template = tmp_path / "template.html"
    template.write_text("<table></table>", encoding="utf-8")
    assert load_source(str(template)) == "<table></table>"


def test_load_source_url_uses_fetcher() -> None:
    seen: list[str] = []

    def _fetch(url: str) -> str:
        seen.append(url)
        return "<div></div>"

    assert load_source(URL, fetcher=_fetch) == "<div></div>"
    assert seen == [URL]


def test_load_source_unreadable_file(tmp_path: Path) -> None:
    template = tmp_path / "latin1.html"
    template.write_bytes(b"<p>\xff\xfe</p>")
    with pytest.raises(InvalidInputError, match="Unable to read"):
        load_source(str(template))


def test_load_source_rejects_unknown(tmp_path: Path) -> None:
    with pytest.raises(InvalidInputError, match="Unable to interpret"):
        load_source(str(tmp_path / "nope.html"))
