"""Session cookie harvester and tariff journey client."""

from .config import HarvesterConfig
from .cookies import CookieJar
from .exceptions import TariffHarvesterError
from .harvest import CookieHarvester
from .journey import JourneyClient, TariffResult
from .pricing import resolve_pricing
from .token import decode_platform_session_id
from .urls import apply_session_id

__all__ = [
    "CookieHarvester",
    "CookieJar",
    "HarvesterConfig",
    "JourneyClient",
    "TariffHarvesterError",
    "TariffResult",
    "apply_session_id",
    "decode_platform_session_id",
    "resolve_pricing",
]
