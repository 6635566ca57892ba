"""
Share token to base URL derivation.

iCloud spreads shared albums across numbered server partitions. The
partition is derived from the first character of the token alone, read as
a base-62 digit:

    0-9 -> 0..9,  A-Z -> 10..35,  a-z -> 36..61
    partition = 1 + (value % 40)

so token "B0z5qAGN1JIFd3y" starts with 'B' (11) and lives on partition 12:

    https://p12-sharedstreams.icloud.com/B0z5qAGN1JIFd3y/sharedstreams/

The derived host is only a first guess; the server may still redirect
(see stream.redirect).
"""

from icloud_album.core.exceptions import InvalidTokenError


PARTITION_COUNT = 40
DEFAULT_HOST_DOMAIN = "icloud.com"


def char_to_base62(char: str) -> int | None:
    """
    Map one character to its base-62 digit value.

    Returns:
        0-61, or None if the character is not in [0-9A-Za-z].
    """
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    if "A" <= char <= "Z":
        return ord(char) - ord("A") + 10
    if "a" <= char <= "z":
        return ord(char) - ord("a") + 36
    return None


def calculate_partition(token: str) -> int:
    """
    Compute the server partition (1-40) for a token.

    Raises:
        InvalidTokenError: If the token is empty or its first character
                           is not a base-62 digit.
    """
    if not token:
        raise InvalidTokenError(token)

    value = char_to_base62(token[0])
    if value is None:
        raise InvalidTokenError(token)

    return 1 + (value % PARTITION_COUNT)


def resolve_base_url(token: str, host_domain: str = DEFAULT_HOST_DOMAIN) -> str:
    """
    Build the initial shared-streams base URL for a token.

    Args:
        token: Share token, e.g. "B0z5qAGN1JIFd3y".
        host_domain: Domain the partition host lives under.

    Returns:
        URL of the form https://pNN-sharedstreams.<host_domain>/<token>/sharedstreams/

    Raises:
        InvalidTokenError: If no partition can be derived from the token.

    Example:
        resolve_base_url("B0z5qAGN1JIFd3y")
        # "https://p12-sharedstreams.icloud.com/B0z5qAGN1JIFd3y/sharedstreams/"
    """
    partition = calculate_partition(token)
    return f"https://p{partition:02d}-sharedstreams.{host_domain}/{token}/sharedstreams/"
