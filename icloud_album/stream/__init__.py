"""
Shared-streams protocol module for icloud-album.

This module talks to the iCloud Shared Streams endpoints:
    - base_url: Token -> partition host URL
    - redirect: One request that follows an HTTP 330 host relocation
    - client: requests-based transport with error classification
    - fetcher: webstream and webasseturls calls
    - enrich: Attach asset URLs to derivatives
    - models: Derivative, Photo, AlbumMetadata, AlbumResult and field tables

Usage:
    from icloud_album.stream import (
        resolve_base_url,
        resolve_redirect,
        StreamTransport,
        AlbumFetcher,
        AssetUrlFetcher,
        enrich_photos,
    )
"""

from icloud_album.stream.models import (
    ASSET_ITEM_FIELDS,
    ASSET_URL_FIELDS,
    DERIVATIVE_FIELDS,
    PHOTO_FIELDS,
    WEBSTREAM_FIELDS,
    AlbumMetadata,
    AlbumResult,
    Derivative,
    Photo,
)
from icloud_album.stream.base_url import (
    calculate_partition,
    char_to_base62,
    resolve_base_url,
)
from icloud_album.stream.client import StreamTransport
from icloud_album.stream.redirect import resolve_redirect
from icloud_album.stream.fetcher import AlbumFetcher, AssetUrlFetcher
from icloud_album.stream.enrich import enrich_photos

__all__ = [
    # Models
    "Derivative",
    "Photo",
    "AlbumMetadata",
    "AlbumResult",
    "DERIVATIVE_FIELDS",
    "PHOTO_FIELDS",
    "WEBSTREAM_FIELDS",
    "ASSET_URL_FIELDS",
    "ASSET_ITEM_FIELDS",
    # URL resolution
    "char_to_base62",
    "calculate_partition",
    "resolve_base_url",
    "resolve_redirect",
    # Transport and fetchers
    "StreamTransport",
    "AlbumFetcher",
    "AssetUrlFetcher",
    "enrich_photos",
]
