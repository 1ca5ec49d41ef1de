"""
SignedSearch Loader — Bulk Ingestion
====================================

Streams documents into an index through the client library's bulk helper
(``opensearchpy.helpers.bulk`` or ``elasticsearch.helpers.bulk``), so input
of any size is sent in fixed-size chunks and never held in memory at once.

Typical usage:
    loader = BulkLoader(handler, "docs")
    stats = loader.load_jsonl("exports/*.jsonl", id_field="uuid")
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from elasticsearch import helpers as es_helpers
from opensearchpy import helpers as os_helpers

from .config import Engine

logger = logging.getLogger(__name__)


class BulkLoader:
    """
    Bulk loader for one target index.

    Documents are plain dicts. When ``id_field`` is given, its value becomes
    the document ``_id``; otherwise the engine generates ids.
    """

    def __init__(
        self,
        handler,
        index: str,
        batch_size: int = 5000,
        progress_interval: int = 100_000
    ):
        """
        Args:
            handler: SearchHandler owning the client
            index: Target index name
            batch_size: Documents per bulk request
            progress_interval: Documents between progress log lines
        """
        self.handler = handler
        self.index = index
        self.batch_size = batch_size
        self.progress_interval = progress_interval

    def _bulk(self, actions: Iterable[dict]):
        if self.handler.config.engine is Engine.ELASTICSEARCH:
            helper = es_helpers.bulk
        else:
            helper = os_helpers.bulk
        return helper(
            self.handler.client,
            actions,
            chunk_size=self.batch_size,
            raise_on_error=False
        )

    def _actions(
        self,
        documents: Iterable[dict],
        id_field: Optional[str],
        counters: Dict[str, int]
    ) -> Iterator[dict]:
        start_time = time.time()
        for doc in documents:
            action: Dict[str, Any] = {"_index": self.index, "_source": doc}
            if id_field and doc.get(id_field) is not None:
                action["_id"] = str(doc[id_field])

            counters["total_records"] += 1
            if counters["total_records"] % self.progress_interval == 0:
                elapsed = time.time() - start_time
                logger.info(
                    "%s records | %s rec/sec",
                    f"{counters['total_records']:,}",
                    f"{counters['total_records'] / elapsed:,.0f}" if elapsed else "-"
                )
            yield action

    def load(
        self,
        documents: Iterable[dict],
        id_field: Optional[str] = None
    ) -> dict:
        """
        Index documents from any iterable.

        Args:
            documents: Document bodies
            id_field: Field whose value is used as the document id

        Returns:
            Load statistics
        """
        counters = {"total_records": 0, "total_errors": 0}
        return self._run(documents, id_field, counters)

    def load_jsonl(
        self,
        pattern: str,
        id_field: Optional[str] = None
    ) -> dict:
        """
        Index documents from JSONL files matching a glob pattern.

        Lines that are not valid JSON objects are skipped and counted as
        errors.

        Args:
            pattern: Glob pattern (e.g. "exports/**/*.jsonl")
            id_field: Field whose value is used as the document id

        Returns:
            Load statistics, including ``files_processed``
        """
        files = _match_files(pattern)
        logger.info("Found %d files matching %s", len(files), pattern)

        counters = {"total_records": 0, "total_errors": 0}

        def read_documents():
            for filepath in files:
                with open(filepath, "r", encoding="utf-8") as f:
                    for line_no, line in enumerate(f, 1):
                        if not line.strip():
                            continue
                        try:
                            doc = json.loads(line)
                        except json.JSONDecodeError:
                            logger.warning("%s:%d: invalid JSON, skipped", filepath, line_no)
                            counters["total_errors"] += 1
                            continue
                        if not isinstance(doc, dict):
                            logger.warning("%s:%d: not an object, skipped", filepath, line_no)
                            counters["total_errors"] += 1
                            continue
                        yield doc

        stats = self._run(read_documents(), id_field, counters)
        stats["files_processed"] = len(files)
        return stats

    def _run(
        self,
        documents: Iterable[dict],
        id_field: Optional[str],
        counters: Dict[str, int]
    ) -> dict:
        start_time = time.time()
        indexed, errors = self._bulk(self._actions(documents, id_field, counters))

        failed = errors if isinstance(errors, list) else []
        for item in failed[:10]:
            logger.error("Bulk item failed: %s", item)
        counters["total_errors"] += len(failed)

        elapsed = time.time() - start_time
        stats = {
            "total_records": counters["total_records"],
            "indexed": indexed,
            "total_errors": counters["total_errors"],
            "elapsed_seconds": elapsed,
            "rate_per_second": indexed / elapsed if elapsed > 0 else 0
        }
        logger.info(
            "Loaded %d/%d documents into %s (%d errors)",
            indexed, stats["total_records"], self.index, stats["total_errors"]
        )
        return stats


def _match_files(pattern: str) -> List[Path]:
    if "**" in pattern:
        base = pattern.split("**")[0] or "."
        return sorted(Path(base).rglob(pattern.split("**/")[-1]))
    base_path = Path(pattern).parent
    return sorted(base_path.glob(Path(pattern).name))
