#!/usr/bin/env python3
"""
Ingest a Greenhouse job board into the pipeline.

Usage:
    python scripts/ingest_greenhouse.py <board-token>
    python scripts/ingest_greenhouse.py <board-token> --limit 25
    python scripts/ingest_greenhouse.py <board-token> --owner <user-id>

Re-running for the same board updates postings in place; it never duplicates
postings or leads. Requires DATABASE_URL (defaults to sqlite:///local.db).
"""
import sys
import os
import argparse
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from jobcrm.config import AUTOMATION_USER_ID
from jobcrm.database import get_session_factory
from jobcrm.errors import JobCrmError
from jobcrm.logging_config import configure_logging
from jobcrm.services.ingestion import ingest_board

logger = logging.getLogger('scripts.ingest_greenhouse')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Ingest a Greenhouse job board')
    parser.add_argument('board', help='Greenhouse board token, e.g. "acme"')
    parser.add_argument('--limit', type=int, default=None, help='Only ingest the first N jobs')
    parser.add_argument('--owner', default=AUTOMATION_USER_ID,
                        help='Owner user id for new leads (default: AUTOMATION_USER_ID, else global)')
    args = parser.parse_args(argv)
    if len(args.board) < 2:
        parser.error('board token must be at least 2 characters')
    if args.limit is not None and args.limit <= 0:
        parser.error('--limit must be a positive integer')
    return args


def main(argv=None):
    args = parse_args(argv)
    configure_logging()

    try:
        result = ingest_board(get_session_factory(), args.board, limit=args.limit, owner_id=args.owner)
    except JobCrmError as e:
        logger.error("Ingest failed for %s: %s", args.board, e.message)
        return 1

    print(
        f"[ingest] Completed for {result['board']}: {result['processed']}/{result['total']} jobs, "
        f"{result['postings_created']} new, {result['postings_updated']} updated, "
        f"{result['leads_created']} new lead(s)"
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
