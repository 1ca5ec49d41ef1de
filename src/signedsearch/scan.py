"""
SignedSearch Scan — Deep Pagination with search_after
=====================================================

Retrieves every document matching a query, however many there are, by
issuing repeated page requests sorted on a unique field and resuming each
one after the sort values of the previous page's last hit.

Offset pagination (``from``/``size``) is capped by the engine's result window
(10,000 by default) and gets more expensive the deeper it goes. A
``search_after`` cursor over ``_id`` costs the same for every page.

Loop:
    1. search(query, sort=_id asc, size=10000, track_total_hits=50000,
       search_after=cursor)
    2. no total in the response  -> stop (MISSING_TOTAL), page discarded
    3. append the page's hits
    4. accumulated >= total      -> stop (complete, or TOTAL_LOWER_BOUND
                                    when the total was only a lower bound)
    5. page is empty             -> stop (EMPTY_PAGE)
    6. last hit has no sort      -> stop (MISSING_CURSOR)
    7. cursor = last hit's sort, go to 1

Early stops are not errors. They are reported through ``StopReason`` so a
caller can tell a complete scan from a partial one. Errors raised by the
client propagate unchanged and nothing is retried.
"""

import logging
from collections import abc
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


SCAN_PAGE_SIZE = 10000
TRACK_TOTAL_HITS = 50000
SCAN_SORT = [{"_id": "asc"}]


class StopReason(str, Enum):
    """Why a scan ended before reaching the reported total."""

    MISSING_TOTAL = "missing-total"
    MISSING_CURSOR = "missing-cursor"
    EMPTY_PAGE = "empty-page"
    TOTAL_LOWER_BOUND = "total-lower-bound"


@dataclass(frozen=True)
class Page:
    """One batch of hits returned by a single request."""

    hits: List[dict]
    total: Optional[int]
    cursor: Optional[list]
    total_exact: bool = True


@dataclass
class ScanResult(abc.Sequence):
    """
    Hits accumulated by a scan, in server order.

    Behaves as a read-only sequence of hits. ``complete`` is False when the
    scan stopped early, with ``reason`` saying why. ``total_exact`` is False
    when the engine only reported a lower bound (``relation: gte``), i.e.
    more documents matched than the total-hits ceiling.
    """

    hits: List[dict] = field(default_factory=list)
    total: Optional[int] = None
    reason: Optional[StopReason] = None
    requests: int = 0
    cursor: Optional[list] = None
    total_exact: bool = True

    @property
    def complete(self) -> bool:
        return self.reason is None

    def sources(self) -> List[dict]:
        """Document bodies of the accumulated hits."""
        return [hit.get("_source", {}) for hit in self.hits]

    def __getitem__(self, item):
        return self.hits[item]

    def __len__(self) -> int:
        return len(self.hits)

    def __iter__(self):
        return iter(self.hits)


def scan_body(query: str, search_after: Optional[list] = None) -> Dict[str, Any]:
    """Request body for one scan page."""
    body: Dict[str, Any] = {
        "query": {
            "query_string": {
                "query": query,
            },
        },
        "sort": SCAN_SORT,
        "size": SCAN_PAGE_SIZE,
        "track_total_hits": TRACK_TOTAL_HITS,
    }
    if search_after is not None:
        body["search_after"] = list(search_after)
    return body


def _total_of(response: dict) -> Tuple[Optional[int], bool]:
    total = response.get("hits", {}).get("total")
    if isinstance(total, dict):
        return total.get("value"), total.get("relation", "eq") == "eq"
    return total, True


class ScanPaginator:
    """
    Cursor loop over one query against one index.

    Pages are produced lazily by ``pages()`` (or hit by hit by ``hits()``);
    ``run()`` collects them into a ScanResult. ``cursor`` and ``fetched``
    always describe the last page or hit handed out, so a scan that was
    abandoned or stopped early can be resumed with a new paginator.

    Example:
        paginator = ScanPaginator(client, "docs", "status:active")
        for hit in paginator.hits():
            handle(hit["_source"])
            if shutting_down():
                break
        if not paginator.complete:
            resume_later(paginator.cursor, paginator.fetched)

    Each call to ``pages()``/``hits()``/``run()`` starts over from the
    position the paginator was created with.
    """

    def __init__(
        self,
        client,
        index: str,
        query: str,
        search_after: Optional[list] = None,
        fetched: int = 0
    ):
        """
        Args:
            client: Search client exposing ``search(index=..., body=...)``
            index: Target index (collection) name
            query: Query-string expression; empty means match all
            search_after: Cursor to resume from (sort values of the last
                hit already seen)
            fetched: Hits already consumed before ``search_after``, so a
                resumed scan still stops at the reported total
        """
        if not index:
            raise ValueError("index must be a non-empty name")

        self._client = client
        self.index = index
        self.query = query
        self._start = (list(search_after) if search_after is not None else None, fetched)
        self._reset()

    def _reset(self):
        self.cursor, self.fetched = self._start
        self.total: Optional[int] = None
        self.total_exact = True
        self.requests = 0
        self.stop_reason: Optional[StopReason] = None
        self.exhausted = False

    @property
    def complete(self) -> bool:
        """True only once the loop ran to the reported total."""
        return self.exhausted and self.stop_reason is None

    def _fetch(self) -> Page:
        response = self._client.search(
            index=self.index,
            body=scan_body(self.query, self.cursor)
        )
        self.requests += 1

        hits = response.get("hits", {}).get("hits", [])
        cursor = hits[-1].get("sort") if hits else None
        total, exact = _total_of(response)
        return Page(hits=hits, total=total, cursor=cursor, total_exact=exact)

    def pages(self) -> Iterator[Page]:
        """Yield pages until the total is reached or pagination cannot go on."""
        self._reset()

        while True:
            page = self._fetch()

            if page.total is None:
                self._stop(StopReason.MISSING_TOTAL)
                return

            self.total = page.total
            self.total_exact = page.total_exact
            self.fetched += len(page.hits)

            logger.debug(
                "Scan %s request %d: %d hits (%d/%d)",
                self.index, self.requests, len(page.hits), self.fetched, self.total
            )

            # Set before yielding: a consumer that stops here has seen the page.
            if page.cursor:
                self.cursor = list(page.cursor)

            yield page

            if self.fetched >= self.total:
                if not self.total_exact:
                    self._stop(StopReason.TOTAL_LOWER_BOUND)
                else:
                    self.exhausted = True
                return
            if not page.hits:
                self._stop(StopReason.EMPTY_PAGE)
                return
            if not page.cursor:
                self._stop(StopReason.MISSING_CURSOR)
                return

    def hits(self) -> Iterator[dict]:
        """Yield hits one at a time across pages."""
        for page in self.pages():
            start = self.fetched - len(page.hits)
            for n, hit in enumerate(page.hits, 1):
                # Position of the last hit handed out
                self.fetched = start + n
                if hit.get("sort"):
                    self.cursor = list(hit["sort"])
                yield hit

    def run(self) -> ScanResult:
        """Run the scan to the end and return everything accumulated."""
        result = ScanResult()
        for page in self.pages():
            result.hits.extend(page.hits)

        result.total = self.total
        result.total_exact = self.total_exact
        result.reason = self.stop_reason
        result.requests = self.requests
        result.cursor = self.cursor
        return result

    def _stop(self, reason: StopReason):
        self.stop_reason = reason
        self.exhausted = True
        logger.warning(
            "Scan of %s stopped early after %d requests: %s (%d/%s hits)",
            self.index,
            self.requests,
            reason.value,
            self.fetched,
            self.total if self.total is not None else "?"
        )
