"""
Test configuration: put src/ on sys.path and provide fake search clients.
"""

from __future__ import annotations

import copy
import sys
from pathlib import Path
from types import SimpleNamespace

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest


def make_docs(n, prefix="doc"):
    """Documents with zero-padded ids so string order matches numeric order."""
    return [
        {"_id": f"{prefix}-{i:06d}", "_source": {"n": i, "status": "active"}}
        for i in range(n)
    ]


class Recorder:
    """Callable that records its keyword arguments and returns a canned value."""

    def __init__(self, result=None):
        self.calls = []
        self.result = {"acknowledged": True} if result is None else result

    def __call__(self, *args, **kwargs):
        self.calls.append(kwargs)
        return self.result


class FakeEngine:
    """
    In-memory stand-in for a search client.

    ``search`` honors size, from, sort on ``_id`` and search_after, and
    reports ``hits.total.value`` like OpenSearch does. Individual responses
    can be overridden through ``responses`` (consumed in order).
    """

    def __init__(self, docs=None, responses=None):
        self.docs = sorted(docs or [], key=lambda d: d["_id"])
        self.responses = list(responses or [])
        self.search_calls = []
        self.closed = False

        self.count = Recorder({"count": len(self.docs)})
        self.create = Recorder({"result": "created"})
        self.index = Recorder({"result": "created", "_id": "generated"})
        self.delete = Recorder({"result": "deleted"})
        self.bulk = Recorder({"errors": False, "items": []})
        self.reindex = Recorder({"total": len(self.docs)})
        self.info = Recorder({"version": {"number": "2.11.0"}})
        self.indices = SimpleNamespace(
            create=Recorder(),
            delete=Recorder(),
            exists=Recorder(True),
            get_settings=Recorder({"docs": {"settings": {}}}),
            put_settings=Recorder(),
            get_mapping=Recorder({"docs": {"mappings": {}}}),
            put_mapping=Recorder(),
            update_aliases=Recorder(),
            get_alias=Recorder({"docs-v1": {"aliases": {"docs": {}}}}),
        )
        self.cat = SimpleNamespace(indices=Recorder([]))
        self.cluster = SimpleNamespace(health=Recorder({"status": "green"}))

    def search(self, index=None, body=None, **params):
        self.search_calls.append({"index": index, "body": copy.deepcopy(body), **params})
        if self.responses:
            return self.responses.pop(0)

        body = body or {}
        docs = self.docs
        after = body.get("search_after")
        if after is not None:
            docs = [d for d in docs if d["_id"] > after[0]]
        start = body.get("from", 0)
        size = body.get("size", 10)
        page = docs[start:start + size]

        hits = []
        for doc in page:
            hit = {"_index": index, "_id": doc["_id"], "_source": doc["_source"]}
            if "sort" in body:
                hit["sort"] = [doc["_id"]]
            hits.append(hit)

        return {
            "hits": {
                "total": {"value": len(self.docs), "relation": "eq"},
                "hits": hits,
            },
            "aggregations": {"total": {"value": 42.0}},
        }

    def close(self):
        self.closed = True


@pytest.fixture
def engine():
    return FakeEngine(make_docs(5))


@pytest.fixture
def handler(engine):
    from signedsearch import SearchHandler

    return SearchHandler(client=engine)
