"""Cookie accumulation for the harvest and journey calls."""

import logging
from dataclasses import dataclass, field
from typing import Any

from .token import ID_TOKEN_COOKIE, SESSION_ID_FIELD, decode_platform_session_id

log = logging.getLogger(__name__)


def parse_set_cookie(header: str) -> tuple[str, str] | None:
    """Split a Set-Cookie header into (name, value), dropping attributes.

    The header is cut at the first ``;`` and the pair at the first ``=``.
    Returns None when either the name or the value is empty.
    """
    pair = header.split(";", 1)[0]
    name, sep, value = pair.partition("=")
    name = name.strip()
    value = value.strip()
    if not sep or not name or not value:
        return None
    return name, value


@dataclass
class CookieJar:
    """Name to value mapping of harvested cookies.

    The platform session id lives beside the cookies, not among them, so it
    never leaks into a Cookie header. ``as_dict()`` merges it back under the
    ``platformSessionId`` key for API output.
    """

    cookies: dict[str, str] = field(default_factory=dict)
    platform_session_id: str | None = None

    def set(self, name: str, value: str) -> None:
        """Store a cookie (last write wins) and decode the id token if it is one."""
        self.cookies[name] = value
        log.debug("Added cookie: %s", name)
        if name == ID_TOKEN_COOKIE:
            session_id = decode_platform_session_id(value)
            if session_id:
                log.info("Platform session id: %s", session_id)
                self.platform_session_id = session_id

    def merge_set_cookie_headers(self, headers: list[str]) -> int:
        """Merge raw Set-Cookie header values, returning how many were added."""
        added = 0
        for header in headers:
            parsed = parse_set_cookie(header)
            if parsed is None:
                continue
            self.set(*parsed)
            added += 1
        return added

    def header(self) -> str:
        """Render real cookies as a ``Cookie:`` header value."""
        return "; ".join(f"{name}={value}" for name, value in self.cookies.items())

    def as_dict(self) -> dict[str, str]:
        """Cookies plus the synthetic ``platformSessionId`` entry, if known."""
        result = dict(self.cookies)
        if self.platform_session_id:
            result[SESSION_ID_FIELD] = self.platform_session_id
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CookieJar":
        """Rebuild a jar from ``as_dict()`` output sent back by a client."""
        cookies = {str(k): str(v) for k, v in data.items() if k != SESSION_ID_FIELD}
        session_id = data.get(SESSION_ID_FIELD)
        return cls(cookies=cookies, platform_session_id=str(session_id) if session_id else None)

    def __len__(self) -> int:
        return len(self.cookies)

    def __contains__(self, name: object) -> bool:
        return name in self.cookies
