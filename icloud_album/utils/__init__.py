"""
Utility functions for icloud-album.

This module provides common helpers used across the library and the CLI:
    - Share link parsing (extract_token)
    - Fixed-size batching of request items (chunked)
    - Choosing the rendition to download (select_best_derivative)
    - Parallel resolution of several albums (resolve_albums)

Usage:
    from icloud_album.utils import (
        extract_token,
        chunked,
        select_best_derivative,
        resolve_albums
    )
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Mapping, Sequence, TypeVar

from tqdm import tqdm

from icloud_album.core.logger import get_logger

if TYPE_CHECKING:
    from icloud_album.stream.models import AlbumResult, Derivative

logger = get_logger(__name__)


T = TypeVar("T")


# Derivative keys that denote a full-resolution rendition. Keys containing
# "original" or "full" also count.
ORIGINAL_DERIVATIVE_KEYS = ("3", "4")


def extract_token(url_or_token: str) -> str:
    """
    Extract the share token from a shared album link or return it as-is.

    Handles:
        - https://www.icloud.com/sharedalbum/#B0z5qAGN1JIFd3y
        - https://www.icloud.com/sharedalbum/#B0z5qAGN1JIFd3y;tail
        - https://www.icloud.com/sharedalbum/B0z5qAGN1JIFd3y/
        - Just the token

    Args:
        url_or_token: Share link or bare token.

    Returns:
        The token. Surrounding whitespace is removed.

    Examples:
        extract_token("https://www.icloud.com/sharedalbum/#B0z5qAGN1JIFd3y")
        # Returns: "B0z5qAGN1JIFd3y"

        extract_token("B0z5qAGN1JIFd3y")
        # Returns: "B0z5qAGN1JIFd3y"
    """
    value = url_or_token.strip()

    if "#" in value:
        value = value.split("#", 1)[1]
        # Some links carry extra state after a ';'
        return value.split(";", 1)[0].strip("/")

    if "://" in value:
        value = value.split("?", 1)[0]
        return value.rstrip("/").split("/")[-1]

    return value


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """
    Split a sequence into consecutive batches of at most size items.

    Raises:
        ValueError: If size is not positive.

    Example:
        list(chunked(["a", "b", "c"], 2))  # [["a", "b"], ["c"]]
    """
    if size < 1:
        raise ValueError(f"Chunk size must be >= 1, got {size}")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


def _is_original_key(key: str) -> bool:
    lowered = key.lower()
    return "original" in lowered or "full" in lowered or key in ORIGINAL_DERIVATIVE_KEYS


def select_best_derivative(
    derivatives: Mapping[str, "Derivative"]
) -> tuple[str, "Derivative"] | None:
    """
    Choose the best downloadable rendition of a photo.

    Only derivatives with a URL are considered.

    Selection order:
        1. Original renditions (see _is_original_key): the one with the
           highest width * height; an original without dimensions is
           used only when no original has them
        2. Otherwise the highest-resolution derivative with dimensions
        3. Otherwise the first derivative with a URL, in server order

    Ties keep the earlier derivative.

    Args:
        derivatives: Photo derivatives keyed by name.

    Returns:
        (key, derivative), or None if no derivative has a URL.
    """
    candidates = [
        (key, derivative)
        for key, derivative in derivatives.items()
        if derivative.url is not None
    ]
    if not candidates:
        return None

    originals = [item for item in candidates if _is_original_key(item[0])]
    if originals:
        best = _highest_resolution(originals)
        return best if best is not None else originals[0]

    best = _highest_resolution(candidates)
    return best if best is not None else candidates[0]


def _highest_resolution(
    items: list[tuple[str, "Derivative"]]
) -> tuple[str, "Derivative"] | None:
    best = None
    best_resolution = -1
    for key, derivative in items:
        resolution = derivative.resolution
        if resolution is not None and resolution > best_resolution:
            best = (key, derivative)
            best_resolution = resolution
    return best


def resolve_albums(
    tokens: Iterable[str],
    resolver: Callable[[str], "AlbumResult"],
    threads: int = 4,
    show_progress: bool = True
) -> list[tuple[str, "AlbumResult | Exception"]]:
    """
    Resolve several albums in parallel with progress tracking.

    Each token is resolved independently on a thread pool; resolutions
    share nothing except the resolver's HTTP connection pool.

    Args:
        tokens: Share tokens to resolve.
        resolver: Function resolving one token, usually
                  AlbumPipeline.get_album.
        threads: Number of worker threads.
        show_progress: Whether to show a tqdm progress bar.

    Returns:
        List of (token, result) tuples in input order, where result is
        either the AlbumResult or the Exception the resolution raised.

    Error Handling:
        Exceptions are caught and returned in the result tuple.
        Processing continues for other tokens.

    Example:
        pipeline = AlbumPipeline()
        for token, result in resolve_albums(tokens, pipeline.get_album):
            if isinstance(result, Exception):
                print(f"Failed: {token} - {result}")
    """
    token_list = list(tokens)
    results: dict[int, tuple[str, "AlbumResult | Exception"]] = {}

    with ThreadPoolExecutor(max_workers=max(1, threads)) as executor:
        future_to_index = {
            executor.submit(resolver, token): index
            for index, token in enumerate(token_list)
        }

        iterator = as_completed(future_to_index)
        if show_progress:
            iterator = tqdm(
                iterator,
                total=len(token_list),
                desc="Resolving albums",
                unit="album"
            )

        for future in iterator:
            index = future_to_index[future]
            token = token_list[index]
            try:
                results[index] = (token, future.result())
            except Exception as e:
                logger.debug(f"Resolution of {token} failed: {e}")
                results[index] = (token, e)

    return [results[index] for index in range(len(token_list))]
