# conifer/headers.py
from __future__ import annotations
import json
import logging
import re
from typing import Mapping

from .config import API_VERSION, ClientConfig, __version__, load_env

log = logging.getLogger("conifer")

API_VERSION_HEADER = "X-Pinecone-Api-Version"
AUTH_HEADER_KEYS = ("api-key", "authorization", "access_token")

_TAG_DISALLOWED = re.compile(r"[^a-z0-9_ :]")
_WHITESPACE = re.compile(r"\s+")


def normalize_source_tag(source_tag: str) -> str:
    """Lowercase, drop anything outside ``[a-z0-9_ :]`` and join words with ``_``."""
    tag = _TAG_DISALLOWED.sub("", source_tag.lower()).strip()
    return _WHITESPACE.sub("_", tag)


def _user_agent(app: str, source_tag: str | None) -> str:
    ua = f"{app}/{__version__}"
    if source_tag:
        ua += f"; source_tag={normalize_source_tag(source_tag)};"
    return ua


def build_user_agent(source_tag: str | None = None) -> str:
    return _user_agent("conifer", source_tag)


def build_user_agent_grpc(source_tag: str | None = None) -> str:
    return _user_agent("conifer[grpc]", source_tag)


def additional_headers_from_env() -> dict[str, str]:
    raw = load_env().pinecone_additional_headers
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        log.warning("ignoring PINECONE_ADDITIONAL_HEADERS, not valid JSON: %s", exc)
        return {}
    if not isinstance(parsed, dict):
        log.warning("ignoring PINECONE_ADDITIONAL_HEADERS, expected a JSON object")
        return {}
    return {str(k): str(v) for k, v in parsed.items()}


def build_shared_headers(config: ClientConfig) -> dict[str, str]:
    """Headers attached to every REST call; later sources win."""
    headers = {
        "User-Agent": build_user_agent(config.source_tag),
        API_VERSION_HEADER: API_VERSION,
    }
    headers.update(additional_headers_from_env())
    headers.update(config.headers)
    return headers


def extract_auth_header(headers: Mapping[str, str]) -> dict[str, str]:
    for key, value in headers.items():
        if key.lower() in AUTH_HEADER_KEYS:
            return {key: value}
    return {}


def grpc_metadata(mapping: Mapping[str, str]) -> tuple[tuple[str, str], ...]:
    # gRPC rejects metadata keys with upper case characters
    return tuple((k.lower(), v) for k, v in mapping.items())
