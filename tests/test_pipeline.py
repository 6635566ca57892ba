"""Test end-to-end album resolution"""

from unittest.mock import patch

import pytest

from icloud_album.core.config import Config, StreamConfig
from icloud_album.core.exceptions import (
    ClientRejectedError,
    InvalidTokenError,
    RateLimitedError,
    SchemaViolationError,
)
from icloud_album.pipeline import AlbumPipeline, get_album
from icloud_album.stream.redirect import HOST_KEY
from tests.conftest import (
    BASE_URL,
    TOKEN,
    WEBSTREAM_PAYLOAD,
    ASSET_PAYLOAD,
    FakeSession,
    album_handler,
    make_response,
)


def _pipeline(handler, config, no_sleep):
    session = FakeSession(handler)
    return AlbumPipeline(config, session=session, sleep=no_sleep), session


class TestAlbumPipeline:
    """Test AlbumPipeline.get_album"""

    def test_end_to_end(self, fast_config, no_sleep):
        pipeline, session = _pipeline(album_handler(), fast_config, no_sleep)

        result = pipeline.get_album(TOKEN)

        assert len(result.photos) == 2
        assert result.photos[0].derivatives["2"].url == "https://cvws.icloud-content.com/B/c1.jpg?o=abc"
        assert result.photos[1].derivatives["2"].url is None
        assert result.metadata.stream_name == "Summer Trip"
        assert result.resolved_count == 1
        assert result.warnings == ()
        assert session.urls() == [
            BASE_URL + "webstream",
            BASE_URL + "webstream",
            BASE_URL + "webasseturls",
        ]
        assert session.calls[2][1] == {"photoGuids": ["g1", "g2"]}

    def test_idempotent(self, fast_config, no_sleep):
        first, _ = _pipeline(album_handler(), fast_config, no_sleep)
        second, _ = _pipeline(album_handler(), fast_config, no_sleep)

        assert first.get_album(TOKEN).to_dict() == second.get_album(TOKEN).to_dict()

    def test_follows_redirect(self, fast_config, no_sleep):
        relocated = f"https://p23-sharedstreams.icloud.com/{TOKEN}/sharedstreams/"

        def handler(url, payload):
            if url.startswith(BASE_URL):
                return make_response(330, {HOST_KEY: "p23-sharedstreams.icloud.com"})
            if url.endswith("webstream"):
                return make_response(200, WEBSTREAM_PAYLOAD)
            return make_response(200, ASSET_PAYLOAD)

        pipeline, session = _pipeline(handler, fast_config, no_sleep)

        result = pipeline.get_album(TOKEN)

        assert result.resolved_count == 1
        assert session.urls() == [
            BASE_URL + "webstream",
            relocated + "webstream",
            relocated + "webasseturls",
        ]

    def test_invalid_token_makes_no_request(self, fast_config, no_sleep):
        pipeline, session = _pipeline(album_handler(), fast_config, no_sleep)

        with pytest.raises(InvalidTokenError):
            pipeline.get_album("#bad")

        assert session.calls == []

    def test_webstream_rejection_aborts(self, fast_config, no_sleep):
        pipeline, session = _pipeline(lambda url, payload: make_response(403), fast_config, no_sleep)

        with pytest.raises(ClientRejectedError):
            pipeline.get_album(TOKEN)

        assert not any(url.endswith("webasseturls") for url in session.urls())

    def test_schema_violation_aborts(self, fast_config, no_sleep):
        pipeline, _ = _pipeline(album_handler(webstream={"photos": "nope"}), fast_config, no_sleep)

        with pytest.raises(SchemaViolationError):
            pipeline.get_album(TOKEN)

    def test_non_finite_retry_after_is_a_rate_limit(self, fast_config, no_sleep):
        def handler(url, payload):
            return make_response(429, headers={"Retry-After": "1e400"})

        pipeline, session = _pipeline(handler, fast_config, no_sleep)

        with pytest.raises(RateLimitedError) as exc_info:
            pipeline.get_album(TOKEN)

        assert exc_info.value.retry_after is None
        assert no_sleep.call_count == 2
        assert all(call.args[0] <= 60.0 for call in no_sleep.call_args_list)

    def test_asset_400_degrades(self, fast_config, no_sleep):
        pipeline, _ = _pipeline(album_handler(asset_status=400), fast_config, no_sleep)

        result = pipeline.get_album(TOKEN)

        assert len(result.photos) == 2
        assert result.resolved_count == 0

    def test_empty_album_skips_asset_call(self, fast_config, no_sleep):
        webstream = {"streamName": "Empty", "photos": []}
        pipeline, session = _pipeline(album_handler(webstream=webstream), fast_config, no_sleep)

        result = pipeline.get_album(TOKEN)

        assert result.photos == []
        assert not any(url.endswith("webasseturls") for url in session.urls())

    def test_warnings_are_returned_and_logged(self, fast_config, no_sleep, webstream_payload, caplog):
        del webstream_payload["userLastName"]
        pipeline, _ = _pipeline(album_handler(webstream=webstream_payload), fast_config, no_sleep)

        with caplog.at_level("WARNING", logger="icloud_album"):
            result = pipeline.get_album(TOKEN)

        assert [w.field for w in result.warnings] == ["userLastName"]
        records = [r for r in caplog.records if hasattr(r, "decode_warning_field")]
        assert records[0].decode_warning_field == "userLastName"
        assert records[0].decode_warning_token == TOKEN

    def test_host_domain_from_config(self, no_sleep):
        config = Config(stream=StreamConfig(host_domain="example.com"))
        pipeline, session = _pipeline(album_handler(), config, no_sleep)

        pipeline.get_album(TOKEN)

        assert session.urls()[0] == f"https://p12-sharedstreams.example.com/{TOKEN}/sharedstreams/webstream"

    def test_close_closes_session(self, fast_config, no_sleep):
        pipeline, session = _pipeline(album_handler(), fast_config, no_sleep)

        pipeline.close()

        assert session.closed


class TestGetAlbum:
    """Test the module-level convenience function"""

    def test_uses_one_off_pipeline(self, fast_config):
        session = FakeSession(album_handler())

        with patch("icloud_album.stream.client.requests.Session", return_value=session):
            result = get_album(TOKEN, fast_config)

        assert result.metadata.stream_name == "Summer Trip"
        assert session.closed
