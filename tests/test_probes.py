# -*- coding: utf-8 -*-
# Time       : 2026/10/19 13:55
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description:
from __future__ import annotations

from typing import List

import pytest
import requests

from ssrelay import probes


class FakeResponse:
    def __init__(self, text: str = "", payload=None, status: int = 200):
        self.text = text
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def calls(monkeypatch) -> List[str]:
    visited = []
    replies = {
        "https://down.example": requests.ConnectionError("refused"),
        "https://garbage.example": FakeResponse(text="<html>rate limited</html>"),
        "https://broken.example": FakeResponse(status=503),
        "https://ok.example": FakeResponse(text="203.0.113.5\n"),
        "https://late.example": FakeResponse(text="198.51.100.1"),
    }

    def fake_get(url, **kwargs):
        visited.append(url)
        reply = replies[url]
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(probes.requests, "get", fake_get)
    return visited


def test_detect_public_ip_first_success_wins(calls):
    endpoints = [
        "https://down.example",
        "https://garbage.example",
        "https://broken.example",
        "https://ok.example",
        "https://late.example",
    ]
    assert probes.detect_public_ip(endpoints) == "203.0.113.5"
    assert calls == endpoints[:4]


def test_detect_public_ip_all_fail(calls):
    assert probes.detect_public_ip(["https://down.example", "https://garbage.example"]) == ""


def test_fetch_latest_version(monkeypatch):
    monkeypatch.setattr(
        probes.requests, "get", lambda url, **kw: FakeResponse(payload={"tag_name": "v1.8.14"})
    )
    assert probes.fetch_latest_version() == "1.8.14"


@pytest.mark.parametrize(
    "reply",
    [FakeResponse(status=403), FakeResponse(text="not json"), requests.Timeout("slow")],
)
def test_fetch_latest_version_failure(monkeypatch, reply):
    def fake_get(url, **kwargs):
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(probes.requests, "get", fake_get)
    assert probes.fetch_latest_version() == ""
