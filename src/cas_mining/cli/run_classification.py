"""
CLI for the end-to-end classification workflow on a CAS server.

Uploads the dataset, explores it, imputes and partitions it, trains and
scores every requested model family, and writes the comparison reports.
"""

import argparse
import logging
from pathlib import Path

from cas_mining import logging_setup
from cas_mining.models.assessment import format_comparison
from cas_mining.models.model_families import MODEL_FAMILIES
from cas_mining.pipelines.classification_pipeline import run_classification_pipeline
from cas_mining.settings import get_settings

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Train, score and compare classifiers on a CAS server"
    )

    cfg = get_settings()

    parser.add_argument(
        "--data",
        type=Path,
        default=cfg.dataset_csv,
        help=f"Path to the input CSV (default: {cfg.dataset_csv})"
    )
    parser.add_argument("--table", default=cfg.table_name, help="Name of the CAS table to create")
    parser.add_argument("--target", default=cfg.target, help="Binary target column")
    parser.add_argument(
        "--models",
        action="append",
        choices=list(MODEL_FAMILIES),
        help="Model family to train; repeat for several (default: all)"
    )
    parser.add_argument("--reports-dir", type=Path, default=cfg.reports_dir, help="Directory for CSV reports")
    parser.add_argument("--figures-dir", type=Path, default=cfg.figures_dir, help="Directory for PNG charts")
    parser.add_argument(
        "--server-caslib",
        default=cfg.source_caslib,
        help="Load --data from this server-side caslib instead of uploading it"
    )
    parser.add_argument("--no-save", action="store_true", help="Do not persist tables to the output caslib")
    parser.add_argument("--log_level", default=cfg.log_level, help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    args = parser.parse_args(argv)

    logging_setup.setup_logging(args.log_level)

    if not args.server_caslib and not args.data.exists():
        logger.error(f"Dataset not found: {args.data}")
        return 1

    try:
        result = run_classification_pipeline(
            dataset_csv=args.data,
            table_name=args.table,
            target=args.target,
            families=args.models,
            reports_dir=args.reports_dir,
            figures_dir=args.figures_dir,
            save_tables=not args.no_save,
            source_caslib=args.server_caslib,
            settings=cfg,
        )
    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        return 1

    print(format_comparison(result.comparison))
    logger.info(f"✓ Reports written to {args.reports_dir}")
    logger.info(f"✓ Figures written to {args.figures_dir}")
    return 0


if __name__ == "__main__":
    exit(main())
