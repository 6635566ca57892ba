"""
icloud-album: Resolve iCloud shared album links into photo download URLs.

This package turns the opaque token of an iCloud shared album link into
album metadata plus a list of photos whose derivatives (size variants)
carry live download URLs.

Architecture:
    Resolution of one token runs in five steps:

    1. Base URL (stream/base_url.py)
        - Map the token's first character to a server partition
    2. Redirect (stream/redirect.py)
        - Check once for an HTTP 330 host relocation and follow it
    3. Album listing (stream/fetcher.py)
        - POST webstream; decode photos and metadata tolerantly
    4. Asset URLs (stream/fetcher.py)
        - POST webasseturls in chunks; map checksum -> URL
    5. Enrich (stream/enrich.py)
        - Attach URLs to matching derivatives

Modules:
    core/       - Configuration, logging, exceptions, retry, decoder
    stream/     - Shared-streams protocol, transport and models
    utils/      - Token parsing, batching, derivative selection
    pipeline.py - AlbumPipeline and get_album
    cli.py      - Command-line interface

Usage:
    Command Line:
        icloud-album "https://www.icloud.com/sharedalbum/#B0z5qAGN1JIFd3y"
        icloud-album B0z5qAGN1JIFd3y --json

    Python API:
        from icloud_album import get_album

        result = get_album("B0z5qAGN1JIFd3y")
        for photo in result.photos:
            best = photo.best_derivative()
"""

__version__ = "0.1.0"
__author__ = "icloud-album Team"

from icloud_album.core.exceptions import ICloudAlbumError
from icloud_album.pipeline import AlbumPipeline, get_album
from icloud_album.stream.models import AlbumMetadata, AlbumResult, Derivative, Photo

__all__ = [
    "__version__",
    "get_album",
    "AlbumPipeline",
    "AlbumResult",
    "AlbumMetadata",
    "Photo",
    "Derivative",
    "ICloudAlbumError",
]
