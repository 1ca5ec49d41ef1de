"""
SignedSearch Auth — Credentials, Signing and Client Construction
================================================================

Builds the wrapped search client from a HandlerConfig.

OpenSearch domains on AWS authenticate every HTTP request with a SigV4
signature. Credentials come from boto3, either from the default provider
chain (environment, instance profile, container role...) or from a named
profile, which may be an SSO profile. Signing itself is done by
``opensearchpy.AWSV4SignerAuth``.

Elasticsearch clusters and unsigned OpenSearch clusters use API-key or
basic authentication instead.
"""

import logging
from typing import Any, Dict

import boto3
from elasticsearch import Elasticsearch
from opensearchpy import AWSV4SignerAuth, OpenSearch, RequestsHttpConnection

from .config import CredentialMode, Engine, HandlerConfig
from .errors import CredentialsError

logger = logging.getLogger(__name__)


def resolve_credentials(config: HandlerConfig):
    """
    Resolve AWS credentials for the configured credential mode.

    Args:
        config: Handler configuration

    Returns:
        botocore Credentials (refreshable where the provider supports it)

    Raises:
        CredentialsError: If no credentials are available
    """
    if config.credential_mode is CredentialMode.PROFILE:
        session = boto3.Session(
            profile_name=config.profile,
            region_name=config.region
        )
    else:
        session = boto3.Session(region_name=config.region)

    credentials = session.get_credentials()
    if credentials is None:
        if config.credential_mode is CredentialMode.PROFILE:
            raise CredentialsError(
                f"No credentials for profile '{config.profile}' "
                "(is the SSO session logged in?)",
                profile=config.profile
            )
        raise CredentialsError("No AWS credentials found in the default chain")

    logger.debug(
        "Resolved %s credentials (method=%s)",
        config.credential_mode.value,
        getattr(credentials, "method", "unknown")
    )
    return credentials


def build_signer(config: HandlerConfig) -> AWSV4SignerAuth:
    """Create the SigV4 request signer for the configured region and service."""
    credentials = resolve_credentials(config)
    return AWSV4SignerAuth(credentials, config.region, config.signing_service)


def build_client(config: HandlerConfig):
    """
    Construct the search client described by ``config``.

    Args:
        config: Handler configuration (validated here)

    Returns:
        An ``opensearchpy.OpenSearch`` or ``elasticsearch.Elasticsearch``
    """
    config.validate()

    if config.engine is Engine.ELASTICSEARCH:
        return _build_elasticsearch(config)
    return _build_opensearch(config)


def _build_opensearch(config: HandlerConfig) -> OpenSearch:
    conn_kwargs: Dict[str, Any] = {
        "hosts": config.hosts,
        "verify_certs": config.verify_certs,
        "timeout": config.timeout,
    }

    if config.signed:
        conn_kwargs["http_auth"] = build_signer(config)
        conn_kwargs["use_ssl"] = True
        conn_kwargs["connection_class"] = RequestsHttpConnection
    elif config.basic_auth:
        conn_kwargs["http_auth"] = config.basic_auth

    logger.info(
        "Connecting to OpenSearch at %s (signed=%s, region=%s)",
        ", ".join(config.hosts),
        config.signed,
        config.region
    )
    return OpenSearch(**conn_kwargs)


def _build_elasticsearch(config: HandlerConfig) -> Elasticsearch:
    conn_kwargs: Dict[str, Any] = {
        "hosts": config.hosts,
        "verify_certs": config.verify_certs,
        "request_timeout": config.timeout,
    }

    if config.api_key:
        conn_kwargs["api_key"] = config.api_key
    elif config.basic_auth:
        conn_kwargs["basic_auth"] = config.basic_auth

    logger.info("Connecting to Elasticsearch at %s", ", ".join(config.hosts))
    return Elasticsearch(**conn_kwargs)
