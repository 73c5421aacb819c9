"""Platform session id extraction from the eShop id-token cookie.

The shop sets ``eShop-auth-prod1_p_id_token`` to an Express-style signed JSON
cookie: the URL-encoded text ``j:{"platformSessionId": "...", ...}``. The
journey API addresses every resource by that platformSessionId.
"""

import json
import logging
from urllib.parse import unquote

log = logging.getLogger(__name__)

ID_TOKEN_COOKIE = "eShop-auth-prod1_p_id_token"
JSON_COOKIE_PREFIX = "j:"
SESSION_ID_FIELD = "platformSessionId"


def decode_platform_session_id(raw: str) -> str | None:
    """Decode the platform session id out of an id-token cookie value.

    Args:
        raw: Cookie value as it appeared in Set-Cookie, possibly URL-encoded.

    Returns:
        The session id, or None when the value is not a decodable token.
        Never raises.
    """
    if not isinstance(raw, str):
        return None

    # decodeURIComponent semantics: '+' stays literal
    try:
        decoded = unquote(raw.strip(), errors="strict")
    except UnicodeDecodeError as e:
        log.warning("Error decoding platform token: %s", e)
        return None
    log.debug("Decoded platform token preview: %s...", decoded[:50])

    if not decoded.startswith(JSON_COOKIE_PREFIX):
        log.debug("Token does not start with %r", JSON_COOKIE_PREFIX)
        return None

    try:
        data = json.loads(decoded[len(JSON_COOKIE_PREFIX) :])
    except ValueError as e:
        log.warning("Error parsing platform token: %s", e)
        return None

    if not isinstance(data, dict):
        return None

    value = data.get(SESSION_ID_FIELD)
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
