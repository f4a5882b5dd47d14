"""Client configuration.

Built once at start-up and handed to the client; there is no way to change
it on a live client.
"""

import os

from pydantic import BaseModel, ConfigDict

BASE_URL = "https://namaste-icd-api.vercel.app"
TIMEOUT_MS = 30000
CONTENT_TYPE = "application/json"


class ClientConfig(BaseModel):
    """Connection settings for the terminology API."""

    model_config = ConfigDict(frozen=True)

    base_url: str = BASE_URL
    timeout_ms: int = TIMEOUT_MS
    content_type: str = CONTENT_TYPE

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Type": self.content_type}

    @classmethod
    def from_env(cls, base_url: str | None = None) -> "ClientConfig":
        """Build a config, letting NAMASTE_API_BASE_URL override the default host."""
        return cls(base_url=base_url or os.getenv("NAMASTE_API_BASE_URL", BASE_URL))
