"""
Reconcile an organization's vectors with the metadata store.

Deletes vector records whose document no longer exists and prints the
report as JSON.
Run: python -m retrieval_core.scripts.reconcile_vectors --organization-id ORG [--timeout SECONDS]

Exit codes: 0 clean run, 1 fatal error, 2 scan aborted or per-item errors.

Dependencies: retrieval_core.dependencies
System role: Operator entry point for orphan cleanup
"""

import argparse
import asyncio
import logging
import sys

from retrieval_core.configs import get_settings
from retrieval_core.core.exceptions import RetrievalCoreException
from retrieval_core.core.reconciliation import ReconciliationReport
from retrieval_core.dependencies import RetrievalCore
from retrieval_core.observability import configure_logging, set_correlation_id

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reconcile-vectors",
        description="Delete vector records whose document no longer exists.",
    )
    parser.add_argument("--organization-id", required=True, help="Organization to scan")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort the scan after this many seconds and report partial counts",
    )
    return parser


async def run(organization_id: str, timeout: float | None = None) -> ReconciliationReport:
    """
    Run one reconciliation scan with a fully wired core.

    Args:
        organization_id: Organization to scan
        timeout: Scan deadline in seconds

    Returns:
        ReconciliationReport: Scan counters
    """
    core = RetrievalCore()
    try:
        await core.vector_store.ensure_collection()
        return await core.cleanup_orphaned_vectors(organization_id, deadline_seconds=timeout)
    finally:
        await core.close()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)
    set_correlation_id()

    try:
        report = asyncio.run(run(args.organization_id, args.timeout))
    except RetrievalCoreException as e:
        logger.error(f"{__name__}:main - Reconciliation failed: {e}")
        sys.exit(1)

    print(report.model_dump_json(indent=2))
    sys.exit(2 if report.aborted or report.errors else 0)


if __name__ == "__main__":
    main()
