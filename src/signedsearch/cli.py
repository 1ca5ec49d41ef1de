"""
SignedSearch CLI — Command-Line Interface
=========================================

Usage:
    signedsearch indices
    signedsearch health
    signedsearch create myindex
    signedsearch count myindex "status:active"
    signedsearch query myindex "status:active" --limit 5 --sort "_id:desc"
    signedsearch scan myindex "status:active" --output hits.jsonl
    signedsearch aggregate myindex "*" total=amount fees=fee
    signedsearch settings myindex
    signedsearch mapping myindex
    signedsearch load myindex "exports/*.jsonl" --id-field uuid

Connection settings default to the environment (AWS_DEFAULT_REGION,
AWS_PROFILE, SEARCH_HOSTS, SEARCH_ENGINE, SEARCH_TIMEOUT); command-line
options override them.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import HandlerConfig
from .core import SearchHandler
from .errors import SignedSearchError


def get_hosts(args) -> Optional[List[str]]:
    """Extract hosts from args."""
    if args.hosts:
        return [h.strip() for h in args.hosts.split(",") if h.strip()]
    return None


def get_handler(args) -> SearchHandler:
    """Build a handler from the environment and global options."""
    config = HandlerConfig.from_env(
        hosts=get_hosts(args),
        engine=args.engine,
        region=args.region,
        profile=args.profile,
        timeout=args.timeout,
        api_key=args.api_key,
        sign_requests=False if args.no_sign else None
    )
    return SearchHandler(config)


def cmd_indices(args):
    """List all indices."""
    with get_handler(args) as handler:
        indices = handler.cluster.indices(include_hidden=args.all)

    print(f"\n{'Index':<30} {'Health':<8} {'Docs':>12} {'Size':>10}")
    print("-" * 65)

    for idx in indices:
        print(
            f"{idx['name']:<30} "
            f"{idx['health']:<8} "
            f"{idx['docs_count']:>12,} "
            f"{idx['size']:>10}"
        )


def cmd_health(args):
    """Show cluster health."""
    with get_handler(args) as handler:
        health = handler.cluster.health()

    print(f"\nCluster: {health['cluster_name']}")
    print(f"Status: {health['status']}")
    print(f"Nodes: {health['number_of_nodes']}")
    print(f"Data nodes: {health['number_of_data_nodes']}")
    print(f"Active shards: {health['active_shards']}")
    print(f"Unassigned shards: {health['unassigned_shards']}")


def cmd_create(args):
    """Create a new index."""
    with get_handler(args) as handler:
        handler.create_index(args.index)
    print(f"Created index: {args.index}")


def cmd_delete(args):
    """Delete an index."""
    if not args.force:
        confirm = input(f"Delete index '{args.index}'? [y/N] ")
        if confirm.lower() != 'y':
            print("Aborted.")
            return

    with get_handler(args) as handler:
        handler.delete_index(args.index)
    print(f"Deleted index: {args.index}")


def cmd_count(args):
    """Count matching documents."""
    with get_handler(args) as handler:
        print(handler.count(args.index, args.query))


def cmd_query(args):
    """Print one page of matching documents as JSON lines."""
    with get_handler(args) as handler:
        docs = handler.query(
            args.index,
            args.query,
            count=args.limit,
            sort=args.sort,
            offset=args.offset
        )
    for doc in docs:
        print(json.dumps(doc, ensure_ascii=False))


def cmd_scan(args):
    """Scan every matching document and write the hits as JSON lines."""
    with get_handler(args) as handler:
        result = handler.scan(args.index, args.query)

    out = open(args.output, "w", encoding="utf-8") if args.output else sys.stdout
    try:
        for hit in result:
            record = hit if args.hits else hit.get("_source", {})
            out.write(json.dumps(record, ensure_ascii=False) + "\n")
    finally:
        if out is not sys.stdout:
            out.close()

    total = result.total if result.total is not None else "?"
    print(
        f"Scanned {len(result):,}/{total} documents in {result.requests} requests",
        file=sys.stderr
    )
    if not result.complete:
        print(f"Scan incomplete: {result.reason.value}", file=sys.stderr)
        return 1
    return 0


def cmd_aggregate(args):
    """Sum numeric fields over the matching documents."""
    fields = {}
    for item in args.fields:
        name, sep, field = item.partition("=")
        fields[name] = {"field": field if sep else name}

    with get_handler(args) as handler:
        aggregations = handler.aggregate(args.index, args.query, fields)

    for name, agg in aggregations.items():
        print(f"{name}: {agg.get('value')}")


def cmd_settings(args):
    """Show index settings."""
    with get_handler(args) as handler:
        settings = handler.get_index_settings(index=args.index)
    print(json.dumps(settings, indent=2))


def cmd_mapping(args):
    """Show index mapping."""
    with get_handler(args) as handler:
        mapping = handler.get_index_mapping(index=args.index)
    print(json.dumps(mapping, indent=2))


def cmd_load(args):
    """Bulk load documents from JSONL files."""
    from .loader import BulkLoader

    with get_handler(args) as handler:
        loader = BulkLoader(handler, args.index, batch_size=args.batch_size)
        stats = loader.load_jsonl(args.pattern, id_field=args.id_field)

    print(f"Files processed: {stats['files_processed']}")
    print(f"Documents indexed: {stats['indexed']:,}/{stats['total_records']:,}")
    print(f"Errors: {stats['total_errors']:,}")
    return 1 if stats["total_errors"] else 0


COMMANDS = {
    "indices": cmd_indices,
    "health": cmd_health,
    "create": cmd_create,
    "delete": cmd_delete,
    "count": cmd_count,
    "query": cmd_query,
    "scan": cmd_scan,
    "aggregate": cmd_aggregate,
    "settings": cmd_settings,
    "mapping": cmd_mapping,
    "load": cmd_load,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signedsearch",
        description="SignedSearch — signed OpenSearch/Elasticsearch handler"
    )

    # Global options
    parser.add_argument("--hosts", help="Search endpoints (comma-separated)", default=None)
    parser.add_argument(
        "--engine",
        choices=["opensearch", "elasticsearch"],
        default=None,
        help="Search engine (default: SEARCH_ENGINE or opensearch)"
    )
    parser.add_argument("--region", default=None, help="AWS signing region")
    parser.add_argument("--profile", default=None, help="AWS (SSO) profile name")
    parser.add_argument("--timeout", type=int, default=None, help="Request timeout (seconds)")
    parser.add_argument("--api-key", dest="api_key", default=None, help="Elasticsearch API key")
    parser.add_argument(
        "--no-sign",
        dest="no_sign",
        action="store_true",
        help="Do not SigV4-sign OpenSearch requests"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    indices_parser = subparsers.add_parser("indices", help="List indices")
    indices_parser.add_argument("--all", action="store_true", help="Include system indices")

    subparsers.add_parser("health", help="Show cluster health")

    create_parser = subparsers.add_parser("create", help="Create an index")
    create_parser.add_argument("index", help="Index name")

    delete_parser = subparsers.add_parser("delete", help="Delete an index")
    delete_parser.add_argument("index", help="Index name")
    delete_parser.add_argument("-f", "--force", action="store_true", help="Skip confirmation")

    count_parser = subparsers.add_parser("count", help="Count matching documents")
    count_parser.add_argument("index", help="Index name")
    count_parser.add_argument("query", nargs="?", default="*", help="Query string")

    query_parser = subparsers.add_parser("query", help="Fetch one page of documents")
    query_parser.add_argument("index", help="Index name")
    query_parser.add_argument("query", help="Query string")
    query_parser.add_argument("--limit", type=int, default=10, help="Page size")
    query_parser.add_argument("--offset", type=int, default=0, help="Hits to skip")
    query_parser.add_argument("--sort", default=None, help="Sort, e.g. 'date:desc'")

    scan_parser = subparsers.add_parser("scan", help="Fetch every matching document")
    scan_parser.add_argument("index", help="Index name")
    scan_parser.add_argument("query", nargs="?", default="*", help="Query string")
    scan_parser.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
    scan_parser.add_argument("--hits", action="store_true", help="Write full hits, not just _source")

    aggregate_parser = subparsers.add_parser("aggregate", help="Sum numeric fields")
    aggregate_parser.add_argument("index", help="Index name")
    aggregate_parser.add_argument("query", help="Query string")
    aggregate_parser.add_argument("fields", nargs="+", help="name=field (or just field)")

    settings_parser = subparsers.add_parser("settings", help="Show index settings")
    settings_parser.add_argument("index", help="Index name")

    mapping_parser = subparsers.add_parser("mapping", help="Show index mapping")
    mapping_parser.add_argument("index", help="Index name")

    load_parser = subparsers.add_parser("load", help="Bulk load JSONL files")
    load_parser.add_argument("index", help="Target index name")
    load_parser.add_argument("pattern", help="Glob pattern for JSONL files")
    load_parser.add_argument("--id-field", dest="id_field", default=None, help="Field used as _id")
    load_parser.add_argument("--batch-size", type=int, default=5000, help="Batch size")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    try:
        return command(args) or 0
    except SignedSearchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
