"""
Shared-streams host relocation.

Before the first data call the album's partition host is checked once.
A server that does not own the album answers HTTP 330 (not a standard
redirect status, so requests does not follow it) with a JSON body naming
the correct host:

    {"X-Apple-MMe-Host": "p23-sharedstreams.icloud.com"}

The check never fails the pipeline: every unexpected outcome keeps the
base URL unchanged and lets the webstream call surface the real error.
"""

from icloud_album.core.exceptions import StreamRequestError
from icloud_album.core.logger import get_logger
from icloud_album.stream.client import StreamTransport

logger = get_logger(__name__)


REDIRECT_STATUS = 330
HOST_KEY = "X-Apple-MMe-Host"
REDIRECT_PAYLOAD = {"streamCtag": None}


def resolve_redirect(transport: StreamTransport, base_url: str, token: str) -> str:
    """
    Ask the webstream endpoint for a relocation and follow a host relocation.

    Args:
        transport: HTTP transport.
        base_url: Base URL from resolve_base_url().
        token: Share token, used to rebuild the relocated URL.

    Returns:
        https://<host>/<token>/sharedstreams/ when the server answers 330
        with a usable host, otherwise base_url unchanged.
    """
    try:
        response = transport.post(base_url + "webstream", REDIRECT_PAYLOAD)
    except StreamRequestError as e:
        logger.warning(f"Redirect check failed, keeping {base_url}: {e}")
        return base_url

    if response.status_code != REDIRECT_STATUS:
        logger.debug(f"No redirect for {token} (status {response.status_code})")
        return base_url

    try:
        body = response.json()
    except ValueError:
        logger.warning(f"Redirect response for {token} has no JSON body, keeping {base_url}")
        return base_url

    host = body.get(HOST_KEY) if isinstance(body, dict) else None
    if not isinstance(host, str) or not host.strip():
        logger.warning(f"Redirect response for {token} has no {HOST_KEY}, keeping {base_url}")
        return base_url

    new_url = f"https://{host.strip()}/{token}/sharedstreams/"
    logger.debug(f"Album {token} relocated to {new_url}")
    return new_url
