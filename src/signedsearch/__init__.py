"""
SignedSearch — Signed OpenSearch/Elasticsearch Handler
======================================================

A thin wrapper around the official OpenSearch and Elasticsearch clients:
search, count, aggregate, index and document CRUD, settings, mappings,
aliases, reindex and bulk calls are forwarded to the client, and requests
to OpenSearch domains on AWS are signed with SigV4 using boto3 credentials.

On top of that it provides a deep scan: every document matching a query,
fetched page by page with search_after cursors, with an explicit marker
when the scan could not run to completion.

Usage:
    from signedsearch import HandlerConfig, SearchHandler

    config = HandlerConfig(
        hosts=["https://search-docs.eu-west-1.es.amazonaws.com"],
        region="eu-west-1",
    )
    handler = SearchHandler(config)

    handler.count("docs", "status:active")
    result = handler.scan("docs", "status:active")
    if not result.complete:
        print("stopped early:", result.reason)

License: MIT
"""

__version__ = "0.1.0"

from .config import CredentialMode, Engine, HandlerConfig
from .core import SearchHandler
from .cluster import ClusterManager
from .errors import (
    ClientStateError,
    ConfigurationError,
    CredentialsError,
    SignedSearchError,
)
from .loader import BulkLoader
from .scan import Page, ScanPaginator, ScanResult, StopReason

__all__ = [
    "SearchHandler",
    "HandlerConfig",
    "Engine",
    "CredentialMode",
    "ClusterManager",
    "BulkLoader",
    "ScanPaginator",
    "ScanResult",
    "Page",
    "StopReason",
    "SignedSearchError",
    "ConfigurationError",
    "CredentialsError",
    "ClientStateError",
]
