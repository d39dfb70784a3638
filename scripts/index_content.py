#!/usr/bin/env python
"""Index a markdown content vault.

Usage:
    python -m scripts.index_content --content-dir content

Builds or refreshes the vector index from every markdown file under the
content directory. Unchanged documents are skipped unless ``--force`` is
given. Exits non-zero when any batch failed, so it can gate a site build.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from vault_search.config import get_settings
from vault_search.context import SearchContext
from vault_search.documents.corpus import MarkdownCorpus
from vault_search.indexing.models import IndexReport
from vault_search.indexing.pipeline import IndexingPipeline
from vault_search.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


async def run_indexing(
    content_dir: Path | None,
    force: bool = False,
    reconcile: bool | None = None,
    output_path: Path | None = None,
) -> IndexReport:
    """Index the vault and print a summary.

    Args:
        content_dir: Vault root (defaults to ``CONTENT_DIR``).
        force: Re-embed unchanged documents.
        reconcile: Delete records for removed documents; None uses settings.
        output_path: Optional path to save the report JSON.

    Returns:
        The run's IndexReport.
    """
    settings = get_settings()
    setup_logging(level=settings.log_level)

    root = content_dir or settings.content_dir
    logger.info(f"Indexing content from {root}")
    corpus = MarkdownCorpus(root)

    async with SearchContext(settings) as context:
        report = await IndexingPipeline(context).run(
            corpus,
            reconcile=reconcile,
            force=force,
        )

    print("\n" + "=" * 60)
    print("INDEXING SUMMARY")
    print("=" * 60)
    print(f"Provider: {report.provider_tag}")
    print(f"Documents: {report.total}")
    print(f"Indexed: {report.indexed}")
    print(f"Skipped (unchanged): {report.skipped}")
    print(f"Deleted: {report.deleted}")
    print(f"Failed batches: {len(report.failed_batches)}")
    for failure in report.failed_batches:
        print(f"  batch {failure.batch_index}: {failure.error_code} {failure.error}")
    print(f"Duration: {report.duration_seconds:.2f}s")
    print("=" * 60)

    if output_path:
        output_path.write_text(report.model_dump_json(indent=2))
        logger.info(f"Report saved to {output_path}")

    return report


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Index a markdown content vault",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--content-dir",
        type=Path,
        default=None,
        help="Vault root (defaults to CONTENT_DIR)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-embed documents even when unchanged",
    )
    parser.add_argument(
        "--no-reconcile",
        dest="reconcile",
        action="store_false",
        default=None,
        help="Keep records whose documents were removed",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to save the report JSON",
    )

    args = parser.parse_args()

    report = asyncio.run(
        run_indexing(
            content_dir=args.content_dir,
            force=args.force,
            reconcile=args.reconcile,
            output_path=args.output,
        )
    )

    sys.exit(0 if report.succeeded else 1)


if __name__ == "__main__":
    main()
