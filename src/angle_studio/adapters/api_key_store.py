"""Process-local API key selection."""

from dataclasses import dataclass, field

from angle_studio.services.authorization import KeySelector


@dataclass
class ApiKeyStore(KeySelector):
    """Key selector that keeps the selected key in memory."""

    api_key: str | None = field(default=None, repr=False)

    async def has_selected_key(self) -> bool:
        """Return true when a non-empty key is stored."""
        return bool(self.api_key)

    async def select_key(self, api_key: str | None = None) -> None:
        """Store a new key; keep the current one when none is given."""
        value = (api_key or "").strip()
        if value:
            self.api_key = value
            return
        if not self.api_key:
            raise ValueError("An API key value is required")

    def current(self) -> str | None:
        return self.api_key
