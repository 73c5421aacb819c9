"""Custom exceptions for the tariff harvester."""


class TariffHarvesterError(Exception):
    """Base exception for harvester errors."""

    pass


class HarvestError(TariffHarvesterError):
    """Cookie harvest could not be started."""

    pass


class SessionRequiredError(TariffHarvesterError):
    """No platform session id is available for a session-scoped call."""

    pass


class UnresolvedPlaceholderError(TariffHarvesterError):
    """A URL still carries the session placeholder when it is about to be sent."""

    pass


class DeviceNotFoundError(TariffHarvesterError):
    """Requested device is not in the device-groups listing."""

    pass


class StepFailedError(TariffHarvesterError):
    """A journey step returned a non-2xx response."""

    def __init__(self, step: str, status: int, message: str | None = None):
        self.step = step
        self.status = status
        super().__init__(message or f"Step {step} failed: {status}")


class UpstreamError(TariffHarvesterError):
    """Journey initialisation or API call made on behalf of a client failed."""

    pass
