"""Authorization state and host key selection."""

import logging
from dataclasses import dataclass
from typing import Protocol

_logger = logging.getLogger(__name__)


class KeySelector(Protocol):
    """Interface to the host environment that owns API key selection."""

    async def has_selected_key(self) -> bool:
        """Return true when a usable key has been selected."""

    async def select_key(self, api_key: str | None = None) -> None:
        """Select a key, optionally providing its value."""


@dataclass
class AuthorizationState:
    """Explicit authorized flag passed through the generation calls."""

    authorized: bool = True

    def revoke(self) -> None:
        self.authorized = False

    def grant(self) -> None:
        self.authorized = True


class AuthErrorMatcher:
    """Recognize authorization failures from a service error message."""

    def __init__(self, patterns: tuple[str, ...]) -> None:
        self.patterns = patterns

    def __call__(self, message: str | None) -> bool:
        if not message:
            return False
        return any(pattern in message for pattern in self.patterns)


@dataclass
class AuthorizationService:
    """Keeps the authorization state in sync with the key selector."""

    selector: KeySelector
    state: AuthorizationState

    async def refresh(self) -> bool:
        """Query the host for a selected key and update the state."""
        has_key = await self.selector.has_selected_key()
        if has_key:
            self.state.grant()
        else:
            self.state.revoke()
        return has_key

    async def select_key(self, api_key: str | None = None) -> bool:
        """Ask the host to select a key and mark the studio authorized."""
        try:
            await self.selector.select_key(api_key)
        except Exception:
            _logger.exception("Failed to select API key")
            return self.state.authorized
        self.state.grant()
        return True
