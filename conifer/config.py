# conifer/config.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidRequest

__version__ = "0.4.0"

API_VERSION = "2025-04"                   # sent as X-Pinecone-Api-Version
DEFAULT_CONTROLLER_HOST = "https://api.pinecone.io"
DEFAULT_NAMESPACE = "__default__"
DEFAULT_TIMEOUT_S = 20.0
DEFAULT_RETRIES = 0


class EnvSettings(BaseSettings):
    """Environment overrides read on every client construction."""
    pinecone_api_key: Optional[str] = None
    pinecone_controller_host: Optional[str] = None
    pinecone_additional_headers: Optional[str] = None   # raw JSON object
    pinecone_client_id: Optional[str] = None
    pinecone_client_secret: Optional[str] = None

    model_config = SettingsConfigDict(extra="ignore")


def load_env() -> EnvSettings:
    return EnvSettings()


@dataclass(frozen=True)
class ClientConfig:
    headers: dict[str, str] = field(default_factory=dict)   # sent on every request, may carry auth
    host: str | None = None                                 # control-plane host override
    source_tag: str | None = None                           # appended to the User-Agent
    timeout_s: float = DEFAULT_TIMEOUT_S
    retries: int = DEFAULT_RETRIES                          # transport-level retries only

    @classmethod
    def with_api_key(cls, api_key: str | None = None, **kwargs) -> "ClientConfig":
        """Build a config authenticated with an API key.

        Falls back to ``PINECONE_API_KEY`` when ``api_key`` is empty.
        """
        key = api_key or load_env().pinecone_api_key
        if not key:
            raise InvalidRequest(
                "no API key provided, please pass an API key for authorization "
                "or set the PINECONE_API_KEY environment variable"
            )
        cfg = cls(**kwargs)
        headers = dict(cfg.headers)
        headers["Api-Key"] = key
        return replace(cfg, headers=headers)

    def controller_host(self) -> str:
        host = self.host or load_env().pinecone_controller_host or DEFAULT_CONTROLLER_HOST
        return ensure_url_scheme(host)


def ensure_url_scheme(host: str) -> str:
    if host.startswith("http://") or host.startswith("https://"):
        return host
    return "https://" + host


def ensure_host_has_https(host: str) -> str:
    if host.startswith("https://"):
        return host
    if host.startswith("http://"):
        return "https://" + host[len("http://"):]
    return "https://" + host
