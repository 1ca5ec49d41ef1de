"""
SignedSearch Config — Explicit Handler Configuration
====================================================

Everything the handler needs to build its search client: endpoints, engine,
AWS region, credential mode and signing service. The configuration is passed
to the handler constructor; only ``HandlerConfig.from_env`` reads the process
environment.

Environment variables (``from_env``):
    AWS_DEFAULT_REGION / AWS_REGION   signing region
    AWS_PROFILE                       named (SSO) profile; selects PROFILE mode
    SEARCH_HOSTS                      comma-separated endpoints
    SEARCH_ENGINE                     "opensearch" or "elasticsearch"
    SEARCH_TIMEOUT                    request timeout in seconds
"""

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, List, Mapping, Optional

from .errors import ConfigurationError


DEFAULT_HOSTS = ["http://localhost:9200"]
DEFAULT_TIMEOUT = 10


class Engine(str, Enum):
    """Search engine behind the endpoints."""

    OPENSEARCH = "opensearch"
    ELASTICSEARCH = "elasticsearch"


class CredentialMode(str, Enum):
    """Where signing credentials come from."""

    AMBIENT = "ambient"
    PROFILE = "profile"


@dataclass
class HandlerConfig:
    """
    Connection and signing settings for a SearchHandler.

    Example:
        config = HandlerConfig(
            hosts=["https://search-docs.eu-west-1.es.amazonaws.com"],
            region="eu-west-1",
            credential_mode=CredentialMode.PROFILE,
            profile="analytics-sso",
        )
    """

    hosts: List[str] = field(default_factory=lambda: list(DEFAULT_HOSTS))
    engine: Engine = Engine.OPENSEARCH
    region: Optional[str] = None
    credential_mode: CredentialMode = CredentialMode.AMBIENT
    profile: Optional[str] = None
    signing_service: str = "es"
    sign_requests: bool = True
    timeout: int = DEFAULT_TIMEOUT
    verify_certs: bool = True
    api_key: Optional[str] = None
    basic_auth: Optional[tuple] = None

    def __post_init__(self):
        self.engine = _parse_enum(Engine, self.engine, "engine")
        self.credential_mode = _parse_enum(
            CredentialMode, self.credential_mode, "credential_mode"
        )

    @property
    def signed(self) -> bool:
        """True when requests are SigV4-signed."""
        return self.engine is Engine.OPENSEARCH and self.sign_requests

    def validate(self) -> "HandlerConfig":
        """
        Check the configuration for consistency.

        Returns:
            The config itself, so calls can be chained

        Raises:
            ConfigurationError: If a required setting is missing or invalid
        """
        if not self.hosts:
            raise ConfigurationError("At least one host is required", field="hosts")
        if self.timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be positive, got {self.timeout}", field="timeout"
            )
        if self.api_key and self.engine is not Engine.ELASTICSEARCH:
            raise ConfigurationError(
                "API keys are only supported by the Elasticsearch engine",
                field="api_key"
            )
        if self.signed:
            if self.basic_auth:
                raise ConfigurationError(
                    "Basic auth cannot be combined with request signing",
                    field="basic_auth"
                )
            if not self.region:
                raise ConfigurationError(
                    "A region is required to sign requests", field="region"
                )
            if not self.signing_service:
                raise ConfigurationError(
                    "A signing service name is required", field="signing_service"
                )
            if self.credential_mode is CredentialMode.PROFILE and not self.profile:
                raise ConfigurationError(
                    "Profile credential mode needs a profile name", field="profile"
                )
        return self

    def with_timeout(self, timeout: int) -> "HandlerConfig":
        """Return a copy with a different request timeout."""
        return replace(self, timeout=timeout)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any
    ) -> "HandlerConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
            **overrides: Field values that win over the environment
                (``None`` values are ignored)

        Returns:
            HandlerConfig
        """
        env = os.environ if environ is None else environ
        values: dict = {}

        region = env.get("AWS_DEFAULT_REGION") or env.get("AWS_REGION")
        if region:
            values["region"] = region

        profile = env.get("AWS_PROFILE")
        if profile:
            values["profile"] = profile
            values["credential_mode"] = CredentialMode.PROFILE

        hosts = env.get("SEARCH_HOSTS")
        if hosts:
            values["hosts"] = [h.strip() for h in hosts.split(",") if h.strip()]

        engine = env.get("SEARCH_ENGINE")
        if engine:
            values["engine"] = _parse_enum(Engine, engine, "engine")

        timeout = env.get("SEARCH_TIMEOUT")
        if timeout:
            try:
                values["timeout"] = int(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"SEARCH_TIMEOUT must be an integer, got {timeout!r}",
                    field="timeout"
                )

        for key, value in overrides.items():
            if value is None:
                continue
            values[key] = value
            # An explicit profile implies profile mode
            if key == "profile" and "credential_mode" not in overrides:
                values["credential_mode"] = CredentialMode.PROFILE

        return cls(**values)


def _parse_enum(enum_cls, value: str, name: str):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        choices = ", ".join(e.value for e in enum_cls)
        raise ConfigurationError(
            f"Unknown {name} {value!r} (expected one of: {choices})", field=name
        )
