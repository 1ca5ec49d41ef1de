"""
Tests for credential resolution and client construction.
"""

from __future__ import annotations

import pytest

from signedsearch import auth
from signedsearch import CredentialsError, HandlerConfig, Engine


class FakeSession:
    instances = []

    def __init__(self, profile_name=None, region_name=None, credentials="creds"):
        self.profile_name = profile_name
        self.region_name = region_name
        self._credentials = credentials
        FakeSession.instances.append(self)

    def get_credentials(self):
        return self._credentials


class Captured:
    def __init__(self, *args, **kwargs):
        self.args = args
        self.kwargs = kwargs


@pytest.fixture
def fake_aws(monkeypatch):
    FakeSession.instances = []
    monkeypatch.setattr(auth.boto3, "Session", FakeSession)
    monkeypatch.setattr(auth, "AWSV4SignerAuth", Captured)
    monkeypatch.setattr(auth, "OpenSearch", Captured)
    monkeypatch.setattr(auth, "Elasticsearch", Captured)
    return FakeSession


def test_ambient_credentials_use_default_session(fake_aws):
    config = HandlerConfig(region="eu-west-1")
    assert auth.resolve_credentials(config) == "creds"
    session = fake_aws.instances[0]
    assert session.profile_name is None
    assert session.region_name == "eu-west-1"


def test_profile_credentials_use_named_profile(fake_aws):
    config = HandlerConfig(region="eu-west-1", credential_mode="profile", profile="sso-dev")
    auth.resolve_credentials(config)
    assert fake_aws.instances[0].profile_name == "sso-dev"


def test_missing_credentials_raise(monkeypatch):
    monkeypatch.setattr(
        auth.boto3, "Session",
        lambda **kwargs: FakeSession(credentials=None, **kwargs)
    )
    config = HandlerConfig(region="eu-west-1", profile="sso-dev", credential_mode="profile")
    with pytest.raises(CredentialsError) as exc:
        auth.resolve_credentials(config)
    assert exc.value.profile == "sso-dev"


def test_signed_opensearch_client(fake_aws):
    config = HandlerConfig(
        hosts=["https://search-docs.eu-west-1.es.amazonaws.com"],
        region="eu-west-1",
        timeout=15,
    )
    client = auth.build_client(config)

    kwargs = client.kwargs
    assert kwargs["hosts"] == ["https://search-docs.eu-west-1.es.amazonaws.com"]
    assert kwargs["timeout"] == 15
    assert kwargs["use_ssl"] is True
    assert kwargs["connection_class"] is auth.RequestsHttpConnection

    signer = kwargs["http_auth"]
    assert signer.args == ("creds", "eu-west-1", "es")


def test_serverless_signing_service(fake_aws):
    config = HandlerConfig(region="eu-west-1", signing_service="aoss")
    client = auth.build_client(config)
    assert client.kwargs["http_auth"].args[2] == "aoss"


def test_unsigned_opensearch_uses_basic_auth(fake_aws):
    config = HandlerConfig(sign_requests=False, basic_auth=("admin", "admin"))
    client = auth.build_client(config)
    assert client.kwargs["http_auth"] == ("admin", "admin")
    assert "connection_class" not in client.kwargs
    assert fake_aws.instances == []


def test_elasticsearch_client_uses_api_key(fake_aws):
    config = HandlerConfig(engine=Engine.ELASTICSEARCH, api_key="k", timeout=20)
    client = auth.build_client(config)
    assert client.kwargs == {
        "hosts": ["http://localhost:9200"],
        "verify_certs": True,
        "request_timeout": 20,
        "api_key": "k",
    }


def test_build_client_validates(fake_aws):
    from signedsearch import ConfigurationError

    with pytest.raises(ConfigurationError):
        auth.build_client(HandlerConfig())
