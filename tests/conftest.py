"""Test configuration and fixtures"""

import copy
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from icloud_album.core.config import Config, RetryConfig
from icloud_album.core.retry import BackoffStrategy


TOKEN = "B0z5qAGN1JIFd3y"
BASE_URL = f"https://p12-sharedstreams.icloud.com/{TOKEN}/sharedstreams/"

WEBSTREAM_PAYLOAD = {
    "streamName": "Summer Trip",
    "userFirstName": "Jane",
    "userLastName": "Doe",
    "streamCtag": "FT;1;42",
    "itemsReturned": "2",
    "locations": {
        "cvws.icloud-content.com": {"scheme": "https", "hosts": ["cvws.icloud-content.com"]}
    },
    "photos": [
        {
            "photoGuid": "g1",
            "caption": "Beach",
            "dateCreated": "2023-07-01T10:00:00Z",
            "batchDateCreated": "2023-07-02T08:00:00Z",
            "width": "4032",
            "height": "3024",
            "derivatives": {
                "2": {"checksum": "c1", "fileSize": "2048", "width": "2048", "height": "1536"},
            },
        },
        {
            "photoGuid": "g2",
            "dateCreated": "2023-07-01T11:00:00Z",
            "batchDateCreated": "2023-07-02T08:00:00Z",
            "width": 1024,
            "height": 768,
            "derivatives": {
                "2": {"checksum": "c2", "fileSize": 1024, "width": 1024, "height": 768},
            },
        },
    ],
}

ASSET_PAYLOAD = {
    "items": {
        "c1": {"url_location": "cvws.icloud-content.com", "url_path": "/B/c1.jpg?o=abc"},
    },
    "locations": {},
}


def make_response(status_code=200, body=None, headers=None, invalid_json=False):
    """Build a Mock standing in for requests.Response."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.headers = headers or {}
    if invalid_json:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = copy.deepcopy(body) if body is not None else {}
    return response


class FakeSession:
    """
    Stand-in for requests.Session.

    Each post() is answered by handler(url, payload). A handler may return
    a response or an exception instance, which is raised.
    """

    def __init__(self, handler):
        self.handler = handler
        self.calls = []
        self.closed = False

    def post(self, url, json=None, headers=None, timeout=None, allow_redirects=True):
        self.calls.append((url, json))
        result = self.handler(url, json)
        if isinstance(result, Exception):
            raise result
        return result

    def mount(self, prefix, adapter):
        pass

    def close(self):
        self.closed = True

    def urls(self):
        return [url for url, _ in self.calls]


def sequence_handler(*results):
    """Handler answering successive calls with the given results, in order."""
    remaining = list(results)

    def handler(url, payload):
        return remaining.pop(0)

    return handler


def album_handler(webstream=None, assets=None, asset_status=200):
    """
    Handler emulating one album on the shared-streams host.

    Every webstream call (the redirect check included) returns the webstream payload;
    every webasseturls call returns the asset payload.
    """
    webstream = WEBSTREAM_PAYLOAD if webstream is None else webstream
    assets = ASSET_PAYLOAD if assets is None else assets

    def handler(url, payload):
        if url.endswith("webstream"):
            return make_response(200, webstream)
        if url.endswith("webasseturls"):
            return make_response(asset_status, assets)
        return make_response(404)

    return handler


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def no_sleep():
    """Records backoff delays instead of sleeping"""
    return Mock(return_value=None)


@pytest.fixture
def fast_config():
    """Default configuration with a small, deterministic retry policy"""
    return Config(retry=RetryConfig(max_attempts=3, strategy=BackoffStrategy.CONSTANT, base_delay=0.01))


@pytest.fixture
def webstream_payload():
    """Two-photo webstream response"""
    return copy.deepcopy(WEBSTREAM_PAYLOAD)


@pytest.fixture
def asset_payload():
    """webasseturls response resolving c1 only"""
    return copy.deepcopy(ASSET_PAYLOAD)
