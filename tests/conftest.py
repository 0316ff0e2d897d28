"""Shared fixtures: an ApiClient wired to a mocked requests.Session so no test
touches the network, plus a LogSink with a frozen clock."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from core.api_client import ApiClient
from core.log_sink import LogSink

BASE_URL = "http://qa.example.test/api"


def make_response(status_code: int, text: str = "") -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.text = text
    return resp


@pytest.fixture
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http: MagicMock) -> ApiClient:
    return ApiClient(base_url=BASE_URL, token="tok-123", session=http, timeout=5)


@pytest.fixture
def log() -> LogSink:
    return LogSink(clock=lambda: datetime(2024, 1, 2, 9, 5, 7))
