"""Errors surfaced to the studio's error slot."""


class StudioError(Exception):
    """Base class for user-facing studio errors."""


class ValidationError(StudioError):
    """Required input is missing; no remote call was issued."""


class AlreadyUpscaledError(ValidationError):
    """The artifact is already an upscaled variant."""


class StudioBusyError(ValidationError):
    """Another operation of the same kind is still in flight."""


class ArtifactNotFoundError(StudioError, LookupError):
    """No artifact with the requested id is in the result store."""


class CapabilityError(StudioError):
    """The remote image service call failed."""


class AuthorizationError(CapabilityError):
    """The remote service rejected the caller's credential."""


class AuthorizationRequiredError(AuthorizationError):
    """The studio is unauthorized; select a key before retrying."""


class BatchExhaustionError(CapabilityError):
    """Every call of a concurrent batch failed."""

    def __init__(self, message: str, failures: list[BaseException]) -> None:
        super().__init__(message)
        self.failures = failures
