#!/usr/bin/env python3
"""
CLI tool for managing hello specs

Usage:
    python -m hello_reconciler.cli --help
    python -m hello_reconciler.cli add --name world
    python -m hello_reconciler.cli status --id 1
    python -m hello_reconciler.cli list
    python -m hello_reconciler.cli delete --id 1
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from sqlalchemy.ext.asyncio import create_async_engine

from hello_reconciler.data_access import Hellos
from hello_reconciler.errors import HelloError

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _describe(hello, status) -> dict:
    return {
        "id": hello.id,
        "name": hello.name,
        "deleted_at": hello.deleted_at.isoformat() if hello.deleted_at else None,
        "message": status.message if status else None,
    }


async def run_command(args) -> int:
    engine = create_async_engine(args.database_url)
    hellos = Hellos(engine)
    try:
        await hellos.create_tables()

        if args.command == 'add':
            hello = await hellos.add(args.name)
            print(f"Created hello {hello.id} for {hello.name}")
        elif args.command == 'delete':
            if await hellos.soft_delete(args.id):
                print(f"Marked hello {args.id} for deletion")
            else:
                print(f"Hello {args.id} not found or already deleted")
                return 1
        elif args.command == 'status':
            found = await hellos.get(args.id)
            if found is None:
                print(f"Hello {args.id} not found")
                return 1
            print(json.dumps(_describe(*found), indent=2, ensure_ascii=False))
        elif args.command == 'list':
            rows = await hellos.all()
            if not rows:
                print("No hellos found")
            for hello, status in rows:
                print(json.dumps(_describe(hello, status), ensure_ascii=False))
    finally:
        await engine.dispose()

    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Hello spec manager CLI")
    parser.add_argument('--database-url', default=os.environ.get("DATABASE_URL"),
                        help='SQLAlchemy async connection URL (env: DATABASE_URL)')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    add_parser = subparsers.add_parser('add', help='Declare a new hello')
    add_parser.add_argument('--name', required=True, help='Name to greet')

    delete_parser = subparsers.add_parser('delete', help='Soft delete a hello')
    delete_parser.add_argument('--id', type=int, required=True, help='Hello ID')

    status_parser = subparsers.add_parser('status', help='Show a hello and its status')
    status_parser.add_argument('--id', type=int, required=True, help='Hello ID')

    subparsers.add_parser('list', help='List live hellos')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1
    if not args.database_url:
        parser.error("--database-url or DATABASE_URL is required")

    try:
        return asyncio.run(run_command(args))
    except HelloError as e:
        logger.error(f"Command failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
