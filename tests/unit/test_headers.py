from conifer.config import API_VERSION, ClientConfig, __version__
from conifer.headers import (
    build_shared_headers,
    build_user_agent,
    build_user_agent_grpc,
    extract_auth_header,
    grpc_metadata,
    normalize_source_tag,
)


def test_user_agent_without_source_tag():
    assert build_user_agent() == f"conifer/{__version__}"
    assert build_user_agent_grpc() == f"conifer[grpc]/{__version__}"


def test_user_agent_appends_normalized_source_tag():
    ua = build_user_agent("  My App:Prod! ")
    assert ua == f"conifer/{__version__}; source_tag=my_app:prod;"


def test_normalize_source_tag_collapses_whitespace():
    assert normalize_source_tag("Lang  Chain Bridge") == "lang_chain_bridge"
    assert normalize_source_tag("é$%") == ""


def test_shared_headers_order_and_overrides(monkeypatch):
    monkeypatch.setenv("PINECONE_ADDITIONAL_HEADERS", '{"X-Env": "env", "X-Both": "env"}')
    cfg = ClientConfig(headers={"X-Both": "config", "Api-Key": "k"}, source_tag="tag")
    headers = build_shared_headers(cfg)
    assert headers["User-Agent"] == build_user_agent("tag")
    assert headers["X-Pinecone-Api-Version"] == API_VERSION
    assert headers["X-Env"] == "env"
    assert headers["X-Both"] == "config"
    assert headers["Api-Key"] == "k"


def test_bad_additional_headers_are_ignored(monkeypatch, caplog):
    monkeypatch.setenv("PINECONE_ADDITIONAL_HEADERS", "not json")
    headers = build_shared_headers(ClientConfig())
    assert set(headers) == {"User-Agent", "X-Pinecone-Api-Version"}
    assert "PINECONE_ADDITIONAL_HEADERS" in caplog.text


def test_extract_auth_header_is_case_insensitive():
    assert extract_auth_header({"X-Other": "1", "Authorization": "Bearer t"}) == {"Authorization": "Bearer t"}
    assert extract_auth_header({"API-KEY": "k"}) == {"API-KEY": "k"}
    assert extract_auth_header({"X-Other": "1"}) == {}


def test_grpc_metadata_lowercases_keys():
    md = grpc_metadata({"Api-Key": "k", "X-Pinecone-Api-Version": API_VERSION})
    assert md == (("api-key", "k"), ("x-pinecone-api-version", API_VERSION))
