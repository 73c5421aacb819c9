"""Session-scoped URL templates."""

from .exceptions import UnresolvedPlaceholderError

# Spelling matches the placeholder the shop's own tooling used; keep it as is
PLACEHOLDER = "*playformsessionid*"


def apply_session_id(template: str, session_id: str | None) -> str:
    """Substitute every placeholder occurrence with the session id.

    Returns the template unchanged when there is no session id.
    """
    if not session_id:
        return template
    return template.replace(PLACEHOLDER, session_id)


def has_placeholder(url: str) -> bool:
    return PLACEHOLDER in url


def resolve(template: str, session_id: str | None) -> str:
    """Apply the session id and refuse to return a still-templated URL.

    Raises:
        UnresolvedPlaceholderError: If the placeholder survives substitution.
    """
    url = apply_session_id(template, session_id)
    if has_placeholder(url):
        raise UnresolvedPlaceholderError(f"URL requires a platform session id but none was extracted: {template}")
    return url
