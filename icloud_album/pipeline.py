"""
Album resolution pipeline.

This module wires the shared-stream components into the single public
operation, get_album(token):

    1. resolve_base_url     token -> partition URL (InvalidTokenError aborts)
    2. resolve_redirect     one request, may relocate the host
    3. AlbumFetcher         webstream -> photos + metadata (errors abort)
    4. AssetUrlFetcher      webasseturls -> checksum -> URL (may degrade)
    5. enrich_photos        attach URLs to derivatives

One resolution runs strictly in sequence. Each call builds its own
DecodeEvents collector and records, so one AlbumPipeline can serve many
threads at once (see utils.resolve_albums); only the HTTP connection pool
is shared.

Usage:
    from icloud_album import AlbumPipeline, get_album

    result = get_album("B0z5qAGN1JIFd3y")

    pipeline = AlbumPipeline(load_config())
    result = pipeline.get_album("B0z5qAGN1JIFd3y")
    print(result.metadata.stream_name, len(result.photos))
"""

import time
from typing import Callable

import requests

from icloud_album.core.config import Config
from icloud_album.core.decoder import DecodeEvents
from icloud_album.core.logger import get_logger, log_decode_warning
from icloud_album.core.retry import RetryExecutor
from icloud_album.stream.base_url import resolve_base_url
from icloud_album.stream.client import StreamTransport
from icloud_album.stream.enrich import enrich_photos
from icloud_album.stream.fetcher import AlbumFetcher, AssetUrlFetcher
from icloud_album.stream.models import AlbumResult
from icloud_album.stream.redirect import resolve_redirect

logger = get_logger(__name__)


class AlbumPipeline:
    """
    Resolves share tokens into hydrated albums.

    Attributes:
        config: Configuration in use.
        transport: HTTP transport shared by all resolutions.
    """

    def __init__(
        self,
        config: Config | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            config: Configuration. Defaults to Config.default().
            session: Optional requests.Session to send requests with.
            sleep: Function used for backoff waits.
        """
        self.config = config or Config.default()
        self.transport = StreamTransport.from_config(self.config.http, session=session)

        executor = RetryExecutor(self.config.retry.to_policy(), sleep=sleep)
        self._album_fetcher = AlbumFetcher(self.transport, executor)
        self._asset_fetcher = AssetUrlFetcher(
            self.transport, executor, chunk_size=self.config.stream.asset_chunk_size
        )

    def get_album(self, token: str) -> AlbumResult:
        """
        Resolve a share token into an album.

        Args:
            token: Share token, e.g. "B0z5qAGN1JIFd3y".

        Returns:
            AlbumResult with metadata, photos in server order (derivative
            URLs set where known) and the lenient decode warnings.

        Raises:
            InvalidTokenError: If the token has no valid partition.
            TransientNetworkError: If webstream/webasseturls retries run out.
            RateLimitedError: If still rate limited after all retries.
            ClientRejectedError: If webstream is rejected, or webasseturls
                                 fails with a 4xx other than 400.
            SchemaViolationError: If a required webstream field is malformed.
        """
        base_url = resolve_base_url(token, self.config.stream.host_domain)
        base_url = resolve_redirect(self.transport, base_url, token)

        events = DecodeEvents()
        photos, metadata = self._album_fetcher.fetch(base_url, events)

        guids = [photo.guid for photo in photos]
        asset_urls = self._asset_fetcher.fetch(base_url, guids, events)

        enrich_photos(photos, asset_urls)

        for warning in events:
            log_decode_warning(logger, warning, token)

        result = AlbumResult(metadata=metadata, photos=photos, warnings=tuple(events))
        logger.info(
            f"Resolved album '{metadata.stream_name}': {len(photos)} photos, "
            f"{result.resolved_count} derivative URLs"
        )
        return result

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self.transport.close()


def get_album(token: str, config: Config | None = None) -> AlbumResult:
    """
    Resolve a share token with a one-off pipeline.

    Convenience wrapper around AlbumPipeline(config).get_album(token).
    """
    pipeline = AlbumPipeline(config)
    try:
        return pipeline.get_album(token)
    finally:
        pipeline.close()
