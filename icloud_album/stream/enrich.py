"""
Attach asset URLs to photo derivatives.
"""

from icloud_album.stream.models import Photo


def enrich_photos(photos: list[Photo], asset_urls: dict[str, str]) -> None:
    """
    Set Derivative.url for every derivative whose checksum has a URL.

    Photos are modified in place. Derivatives without a matching checksum
    keep url=None; nothing is ever removed.

    Args:
        photos: Photos from AlbumFetcher.
        asset_urls: Checksum -> URL map from AssetUrlFetcher.
    """
    for photo in photos:
        for derivative in photo.derivatives.values():
            url = asset_urls.get(derivative.checksum)
            if url is not None:
                derivative.url = url
