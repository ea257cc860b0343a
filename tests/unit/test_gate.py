"""Unit tests for request gate path classification."""

from __future__ import annotations

import pytest

from vidnest.api.gate import Access, bearer_token, classify


@pytest.mark.parametrize(
    "path",
    [
        "/login",
        "/warning",
        "/docs",
        "/static/app.js",
        "/favicon.ico",
        "/robots.txt",
        "/manifest.json",
        "/icons/icon-192.png",
        "/logo.png",
        "/screenshot.png",
        "/api/login",
        "/api/register",
        "/api/logout",
        "/api/refresh",
        "/api/cron",
        "/api/cron/daily",
        "/api/server-config",
        "/api/health",
        "/api/docs",
        "/api/image-proxy",
    ],
)
def test_public_paths(path):
    assert classify(path) is Access.PUBLIC


@pytest.mark.parametrize("path", ["/api/me", "/api/favorites", "/api/refreshing", "/api"])
def test_protected_api_paths(path):
    assert classify(path) is Access.API


def test_proxy_paths():
    assert classify("/api/proxy/live.m3u8") is Access.PROXY


@pytest.mark.parametrize("path", ["/", "/play", "/admin", "/loginx"])
def test_page_paths(path):
    assert classify(path) is Access.PAGE


def test_custom_api_base():
    assert classify("/v2/login", api_base="/v2/") is Access.PUBLIC
    assert classify("/v2/me", api_base="/v2") is Access.API
    assert classify("/api/me", api_base="/v2") is Access.PAGE


@pytest.mark.parametrize("api_base", ["/", ""])
def test_root_mounted_api_base(api_base):
    assert classify("/refresh", api_base=api_base) is Access.PUBLIC
    assert classify("/logout", api_base=api_base) is Access.PUBLIC
    assert classify("/health", api_base=api_base) is Access.PUBLIC
    assert classify("/proxy/live.m3u8", api_base=api_base) is Access.PROXY
    assert classify("/me", api_base=api_base) is Access.API
    assert classify("/", api_base=api_base) is Access.PAGE
    assert classify("/warning", api_base=api_base) is Access.PUBLIC


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("Bearer", None),
        ("Bearer   ", None),
        ("Basic abc", None),
        ("Bearer abc.def.ghi", "abc.def.ghi"),
    ],
)
def test_bearer_token(header, expected):
    assert bearer_token(header) == expected
