"""
Server endpoint record.
"""

from dataclasses import dataclass
from typing import Optional

from shared.config import PromoterConfig

API_ROOT = "/res/apiauth/v1"


@dataclass(frozen=True)
class ServerEndpoint:
    """Host, optional port and credentials of one Rule Execution Server."""
    host: str
    port: Optional[str]
    user: str
    password: str

    def base_url(self) -> str:
        """Management API root, e.g. ``http://localhost:9080/res/apiauth/v1``."""
        url = f"http://{self.host}"
        if self.port is not None:
            url += f":{self.port}"
        return url + API_ROOT

    @classmethod
    def from_config(cls, config: PromoterConfig, role: str) -> "ServerEndpoint":
        """Build the ``source`` or ``destination`` endpoint from settings."""
        if role not in ("source", "destination"):
            raise ValueError(f"Unknown endpoint role: {role}")
        return cls(
            host=getattr(config, f"{role}_host"),
            port=getattr(config, f"{role}_port") or None,
            user=getattr(config, f"{role}_user"),
            password=getattr(config, f"{role}_password"),
        )

    def __repr__(self) -> str:
        return f"ServerEndpoint(host={self.host!r}, port={self.port!r}, user={self.user!r})"
