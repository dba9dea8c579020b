#!/usr/bin/env python3
"""
Build or inspect the schema index from the command line.
Usage (from the repository root):
    python scripts/build_index.py                 # index every visible table
    python scripts/build_index.py --tables users,orders --force
    python scripts/build_index.py --status
    python scripts/build_index.py --clear
    python scripts/build_index.py --test "top customers by revenue"
"""
import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend")))

from config import settings  # noqa: E402
from core.exceptions import SmartQueryError  # noqa: E402
from core.services import build_services  # noqa: E402


def _print_status(services) -> None:
    status = services.indexer.get_status()
    print(f"Index path:        {services.indexer.index_path}")
    print(f"Indexed:           {'yes' if status.indexed else 'no'}")
    print(f"Tables:            {status.tables_count}")
    print(f"Dimension:         {status.dimension or '-'}")
    print(f"Model:             {status.model or '-'}")
    print(f"Last updated:      {status.last_updated or '-'}")
    print(f"Accelerated (vec): {'yes' if status.using_accelerated_search else 'no'}")


def _print_search(services, question: str) -> int:
    result = services.indexer.search_tables(question)
    if result.status != "ok":
        print(f"Search {result.status}: {result.error or 'index not available'}")
        return 1
    print(f"Relevant tables for: {question}")
    for match in result.matches:
        print(f"  {match.score:.4f}  {match.table_name}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Manage the Smart Query schema index")
    parser.add_argument("--status", action="store_true", help="show index status and exit")
    parser.add_argument("--tables", help="comma-separated tables to index (default: all visible)")
    parser.add_argument("--force", action="store_true", help="re-embed even unchanged tables")
    parser.add_argument("--clear", action="store_true", help="delete the index and exit")
    parser.add_argument("--test", metavar="QUESTION", help="run a relevance search and exit")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    services = build_services(settings)

    try:
        if args.status:
            _print_status(services)
            return 0
        if args.clear:
            services.indexer.clear()
            print("Schema index cleared.")
            return 0
        if args.test:
            return _print_search(services, args.test)

        tables = [t.strip() for t in args.tables.split(",") if t.strip()] if args.tables else None
        result = services.indexer.index(tables, force=args.force)
        print(result.message or f"Indexed {result.indexed}, skipped {result.skipped} of {result.tables_count} tables.")
        for error in result.errors:
            print(f"  error: {error}")
        return 1 if result.errors else 0
    except SmartQueryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        services.close()


if __name__ == "__main__":
    sys.exit(main())
