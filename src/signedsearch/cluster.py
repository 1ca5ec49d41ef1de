"""
SignedSearch Cluster — Cluster-Level Operations
===============================================

Operations that are not tied to one index: health, index listing,
aliases and reindexing. ClusterManager works over any already-built
client, so it shares the handler's signed connection.
"""

from typing import Any, Dict, List, Optional


class ClusterManager:
    """
    Cluster management helpers.

    Example:
        manager = SearchHandler(config).cluster
        print(manager.health()["status"])
        for idx in manager.indices():
            print(idx["name"], idx["docs_count"])
    """

    def __init__(self, client: Any):
        """
        Args:
            client: OpenSearch or Elasticsearch client
        """
        self._client = client

    def health(self) -> dict:
        """Cluster health status."""
        return self._client.cluster.health()

    def info(self) -> dict:
        """Cluster name, version and build information."""
        return self._client.info()

    def indices(self, include_hidden: bool = False) -> List[dict]:
        """
        List indices with document counts and sizes.

        Args:
            include_hidden: Include system indices (names starting with ".")

        Returns:
            List of index info dicts
        """
        cat_indices = self._client.cat.indices(format="json")
        return [
            {
                "name": idx["index"],
                "health": idx.get("health", "unknown"),
                "status": idx.get("status", "unknown"),
                "docs_count": int(idx.get("docs.count") or 0),
                "size": idx.get("store.size") or "0b",
                "pri_shards": int(idx.get("pri") or 0),
                "rep_shards": int(idx.get("rep") or 0)
            }
            for idx in cat_indices
            if include_hidden or not idx["index"].startswith(".")
        ]

    def aliases(self, index: Optional[str] = None) -> dict:
        """
        Aliases per index.

        Args:
            index: Restrict to one index (default: all)

        Returns:
            Mapping of index name -> {"aliases": {...}}
        """
        if index:
            return self._client.indices.get_alias(index=index)
        return self._client.indices.get_alias()

    def update_aliases(self, actions: List[Dict[str, Any]]) -> dict:
        """
        Apply alias actions atomically.

        Args:
            actions: e.g. [{"add": {"index": "docs-v2", "alias": "docs"}},
                           {"remove": {"index": "docs-v1", "alias": "docs"}}]

        Returns:
            Acknowledgement response
        """
        return self._client.indices.update_aliases(body={"actions": actions})

    def reindex(
        self,
        source: str,
        dest: str,
        wait_for_completion: bool = True
    ) -> dict:
        """
        Copy documents from one index into another.

        Args:
            source: Source index name
            dest: Destination index name
            wait_for_completion: Wait for reindex to complete

        Returns:
            Reindex response (a task id when not waiting)
        """
        return self._client.reindex(
            body={
                "source": {"index": source},
                "dest": {"index": dest}
            },
            wait_for_completion=wait_for_completion
        )
