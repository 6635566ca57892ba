"""
Shared-stream fetchers.

Two calls hydrate an album, both POSTed to the (possibly relocated) base
URL and both run under the shared RetryExecutor:

    webstream       {"streamCtag": null}
                    -> photos with their derivatives, plus album metadata
    webasseturls    {"photoGuids": [...]}
                    -> checksum -> {url_location, url_path}

Asset Batching:
    Guids are sent in chunks of StreamConfig.asset_chunk_size. Each chunk
    is retried on its own, and a chunk the server rejects with HTTP 400
    contributes an empty map instead of failing the album. Chunk maps are
    merged by key union.

    An album of 60 photos with chunk size 25:
    - 3 webasseturls calls (25, 25, 10 guids)
"""

from typing import Any

from icloud_album.core.decoder import DecodeEvents, decode
from icloud_album.core.exceptions import ClientRejectedError, SchemaViolationError
from icloud_album.core.logger import get_logger
from icloud_album.core.retry import RetryExecutor
from icloud_album.stream.client import StreamTransport
from icloud_album.stream.models import (
    ASSET_ITEM_FIELDS,
    ASSET_URL_FIELDS,
    WEBSTREAM_FIELDS,
    AlbumMetadata,
    Photo,
)
from icloud_album.utils import chunked

logger = get_logger(__name__)


WEBSTREAM_PATH = "webstream"
WEBASSETURLS_PATH = "webasseturls"
DEFAULT_ASSET_CHUNK_SIZE = 25


class AlbumFetcher:
    """
    Fetches and decodes the webstream listing of an album.

    A non-success status other than 429/5xx is fatal and propagates as
    ClientRejectedError; a malformed required field propagates as
    SchemaViolationError.
    """

    def __init__(self, transport: StreamTransport, executor: RetryExecutor) -> None:
        self._transport = transport
        self._executor = executor

    def fetch(
        self,
        base_url: str,
        events: DecodeEvents
    ) -> tuple[list[Photo], AlbumMetadata]:
        """
        Fetch photos and metadata for an album.

        Args:
            base_url: Album base URL ending in /sharedstreams/.
            events: Collector for lenient decode warnings.

        Returns:
            Tuple of (photos in server order, AlbumMetadata).

        Raises:
            TransientNetworkError: If retries are exhausted.
            RateLimitedError: If retries are exhausted while rate limited.
            ClientRejectedError: If the server rejects the request.
            SchemaViolationError: If a required field is missing or malformed.
        """
        url = base_url + WEBSTREAM_PATH
        payload = self._executor.execute(
            lambda: self._transport.post_json(url, {"streamCtag": None}),
            description="webstream"
        )

        record = decode(payload, WEBSTREAM_FIELDS, events)
        photos = [Photo.from_record(photo) for photo in record["photos"]]
        metadata = AlbumMetadata.from_record(record)

        logger.debug(
            f"webstream returned {len(photos)} photos "
            f"(itemsReturned={metadata.items_returned})"
        )
        return photos, metadata


class AssetUrlFetcher:
    """
    Fetches download URLs for photo derivatives, keyed by checksum.

    Attributes:
        chunk_size: Maximum guids per webasseturls request.
    """

    def __init__(
        self,
        transport: StreamTransport,
        executor: RetryExecutor,
        chunk_size: int = DEFAULT_ASSET_CHUNK_SIZE
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self._transport = transport
        self._executor = executor
        self.chunk_size = chunk_size

    def fetch(
        self,
        base_url: str,
        photo_guids: list[str],
        events: DecodeEvents
    ) -> dict[str, str]:
        """
        Fetch the checksum -> URL map for a list of photos.

        Args:
            base_url: Album base URL ending in /sharedstreams/.
            photo_guids: Guids of the photos to resolve.
            events: Collector for lenient decode warnings.

        Returns:
            Dict mapping derivative checksum to an https:// URL. Empty when
            photo_guids is empty (no request is made).

        Raises:
            TransientNetworkError: If retries are exhausted for a chunk.
            RateLimitedError: If retries are exhausted while rate limited.
            ClientRejectedError: For a 4xx other than 400.
        """
        url = base_url + WEBASSETURLS_PATH
        asset_urls: dict[str, str] = {}

        for batch_number, batch in enumerate(chunked(photo_guids, self.chunk_size), start=1):
            asset_urls.update(self._fetch_chunk(url, batch, batch_number, events))

        return asset_urls

    def _fetch_chunk(
        self,
        url: str,
        guids: list[str],
        batch_number: int,
        events: DecodeEvents
    ) -> dict[str, str]:
        """Fetch and decode one webasseturls chunk."""
        try:
            payload = self._executor.execute(
                lambda: self._transport.post_json(url, {"photoGuids": guids}),
                description=f"webasseturls batch {batch_number}"
            )
        except ClientRejectedError as e:
            if e.status_code != 400:
                raise
            logger.warning(
                f"webasseturls rejected batch {batch_number} ({len(guids)} photos) "
                f"with status 400; its photos stay without URLs"
            )
            return {}

        record = decode(payload, ASSET_URL_FIELDS, events)
        return self._parse_items(record["items"], events)

    def _parse_items(self, items: dict[str, Any], events: DecodeEvents) -> dict[str, str]:
        """Build checksum -> URL from the 'items' object of a response."""
        result: dict[str, str] = {}

        for checksum, raw_item in items.items():
            path = f"items.{checksum}"
            try:
                item = decode(raw_item, ASSET_ITEM_FIELDS, events, path)
            except SchemaViolationError as e:
                events.warn(path, e.reason)
                continue

            location = item["url_location"]
            url_path = item["url_path"]
            if not location or not url_path:
                logger.debug(f"Skipping asset {checksum}: incomplete location or path")
                continue

            result[checksum] = "https://" + location + url_path

        return result
