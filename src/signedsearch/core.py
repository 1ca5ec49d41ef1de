"""
SignedSearch Core — Search Handler
==================================

A thin handler over an OpenSearch (or Elasticsearch) client. Every method
forwards to the official client with a fixed parameter shape; requests to
OpenSearch domains on AWS are SigV4-signed by the client's auth layer.

The only control flow of its own is the deep scan (see ``scan.py``).

Query strings use the engine's ``query_string`` syntax throughout; they are
not validated locally, so a malformed query surfaces as the engine's own
error.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Union

from .auth import build_client
from .cluster import ClusterManager
from .config import HandlerConfig
from .errors import ClientStateError
from .scan import TRACK_TOTAL_HITS, ScanPaginator, ScanResult

logger = logging.getLogger(__name__)


def query_string(query: str) -> Dict[str, Any]:
    """Wrap a query expression in a ``query_string`` query."""
    return {
        "query_string": {
            "query": query,
        },
    }


def sort_clause(sort: Union[str, list, dict]) -> Union[list, dict]:
    """
    Normalize a sort specification for a request body.

    Strings use the URL shorthand ``"field[:order],..."``, e.g.
    ``"date:desc,_id"``. Lists and dicts are passed through.
    """
    if not isinstance(sort, str):
        return sort

    clauses: List[Any] = []
    for part in sort.split(","):
        field, _, order = part.strip().partition(":")
        if not field:
            continue
        clauses.append({field: {"order": order}} if order else field)
    return clauses


class SearchHandler:
    """
    Signed search client wrapper.

    Example:
        config = HandlerConfig.from_env(
            hosts=["https://search-docs.eu-west-1.es.amazonaws.com"]
        )
        with SearchHandler(config) as handler:
            handler.count("docs", "status:active")
            result = handler.scan("docs", "status:active")
            if not result.complete:
                print("partial scan:", result.reason)

    The client is built on first use, so the timeout can still be changed
    right after construction. Tests and embedding applications can pass a
    ready-made ``client`` instead.
    """

    def __init__(
        self,
        config: Optional[HandlerConfig] = None,
        client: Any = None
    ):
        """
        Args:
            config: Connection and signing settings (default: from environment)
            client: Pre-built search client; skips client construction
        """
        if config is None and client is None:
            config = HandlerConfig.from_env()
        if config is not None:
            config.validate()

        self.config = config or HandlerConfig()
        self.cache_key: Optional[str] = None
        self._client = client
        self._cluster: Optional[ClusterManager] = None

    @property
    def client(self):
        """The wrapped search client, built on first access."""
        if self._client is None:
            self._client = build_client(self.config)
        return self._client

    @property
    def cluster(self) -> ClusterManager:
        """Cluster-level helpers sharing this handler's client."""
        if self._cluster is None:
            self._cluster = ClusterManager(self.client)
        return self._cluster

    @property
    def timeout(self) -> int:
        """Request timeout in seconds."""
        return self.config.timeout

    @timeout.setter
    def timeout(self, timeout: int):
        if self._client is not None:
            raise ClientStateError(
                "Timeout must be set before the first request is issued"
            )
        self.config = self.config.with_timeout(timeout).validate()

    # -- searching ---------------------------------------------------------

    def search(self, **params) -> dict:
        """Forward a raw search request to the client."""
        return self.client.search(**params)

    def raw(
        self,
        index: str,
        query: str,
        count: int = 1,
        sort: Optional[Union[str, list, dict]] = None,
        offset: int = 0
    ) -> dict:
        """
        Offset-paged query string search.

        Args:
            index: Index name
            query: Query-string expression
            count: Page size
            sort: Optional sort specification
            offset: Number of hits to skip

        Returns:
            The full search response
        """
        body: Dict[str, Any] = {
            "query": query_string(query),
            "from": offset,
            "size": count,
            "track_total_hits": TRACK_TOTAL_HITS,
        }
        if sort:
            body["sort"] = sort_clause(sort)

        return self.client.search(index=index, body=body)

    def query(
        self,
        index: str,
        query: str,
        count: int = 1,
        sort: Optional[Union[str, list, dict]] = None,
        offset: int = 0
    ) -> List[dict]:
        """Like ``raw`` but returns only the document bodies."""
        response = self.raw(index, query, count=count, sort=sort, offset=offset)
        return [hit["_source"] for hit in response["hits"]["hits"]]

    def count(self, index: str, query: str) -> int:
        """Count documents matching a query."""
        response = self.client.count(index=index, body={"query": query_string(query)})
        return response["count"]

    def aggregate(
        self,
        index: str,
        query: str,
        fields: Dict[str, Dict[str, str]]
    ) -> dict:
        """
        Sum numeric fields over the documents matching a query.

        Args:
            index: Index name
            query: Query-string expression
            fields: Aggregation name -> {"field": <numeric field>}

        Returns:
            The ``aggregations`` section of the response
        """
        aggs = {
            name: {"sum": {"field": agg["field"]}}
            for name, agg in fields.items()
        }
        body = {
            "query": query_string(query),
            "aggs": aggs,
        }
        return self.client.search(index=index, body=body)["aggregations"]

    def scan(self, index: str, query: str) -> ScanResult:
        """
        Retrieve every document matching ``query`` using search_after paging.

        Returns:
            ScanResult with all hits in ascending ``_id`` order; check
            ``complete``/``reason`` to detect an early stop
        """
        result = ScanPaginator(self.client, index, query).run()
        logger.info(
            "Scanned %s: %d hits in %d requests%s",
            index,
            len(result),
            result.requests,
            "" if result.complete else f" (partial: {result.reason.value})"
        )
        return result

    def paginator(
        self,
        index: str,
        query: str,
        search_after: Optional[list] = None,
        fetched: int = 0
    ) -> ScanPaginator:
        """
        A scan paginator over this handler's client.

        Use it instead of ``iter_scan`` when the scan may be interrupted:
        its ``complete``, ``cursor`` and ``fetched`` say where to resume.

        Args:
            index: Index name
            query: Query-string expression
            search_after: Cursor of the last hit already seen
            fetched: Number of hits already seen before that cursor
        """
        return ScanPaginator(
            self.client, index, query, search_after=search_after, fetched=fetched
        )

    def iter_scan(
        self,
        index: str,
        query: str,
        search_after: Optional[list] = None,
        fetched: int = 0
    ) -> Iterator[dict]:
        """Lazily yield the hits of a scan, optionally resuming from a cursor."""
        return self.paginator(
            index, query, search_after=search_after, fetched=fetched
        ).hits()

    # -- documents ---------------------------------------------------------

    def create_document(
        self,
        index: str,
        data: dict,
        id: Optional[str] = None
    ) -> dict:
        """
        Add a document. With an id the request fails if it already exists;
        without one the engine generates an id.
        """
        if id is not None:
            return self.client.create(index=index, id=id, body=data)
        return self.client.index(index=index, body=data)

    def delete_document(self, index: str, id: str) -> dict:
        """Delete a document by id."""
        return self.client.delete(index=index, id=id)

    def bulk(self, data: Union[str, List[dict]]) -> dict:
        """Send a pre-built bulk body (action/source lines)."""
        return self.client.bulk(body=data)

    # -- indices -----------------------------------------------------------

    def create_index(self, index: str) -> dict:
        return self.client.indices.create(index=index)

    def delete_index(self, index: str) -> dict:
        return self.client.indices.delete(index=index)

    def index_exists(self, index: str) -> bool:
        return bool(self.client.indices.exists(index=index))

    def indices(self) -> List[dict]:
        """Raw ``_cat/indices`` rows."""
        return self.client.cat.indices(format="json")

    def get_index_settings(self, **params) -> dict:
        return self.client.indices.get_settings(**params)

    def put_index_settings(self, **params) -> dict:
        return self.client.indices.put_settings(**params)

    get_index_parameters = get_index_settings
    put_index_parameters = put_index_settings

    def get_index_mapping(self, **params) -> dict:
        return self.client.indices.get_mapping(**params)

    def put_index_mapping(self, **params) -> dict:
        return self.client.indices.put_mapping(**params)

    def update_index_aliases(self, **params) -> dict:
        return self.client.indices.update_aliases(**params)

    def get_index_aliases(self) -> dict:
        return self.cluster.aliases()

    def reindex(self, **params) -> dict:
        return self.client.reindex(**params)

    def close(self):
        """Close the client connection, if one was opened."""
        if self._client is not None:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
