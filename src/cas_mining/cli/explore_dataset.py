"""
CLI for exploring a dataset on a CAS server without training any model.
"""

import argparse
import logging
from pathlib import Path

from cas_mining import logging_setup
from cas_mining.adapters.cas.client import CASClient
from cas_mining.io.readers import read_csv_header
from cas_mining.io.writers import atomic_write_csv
from cas_mining.pipelines.classification_pipeline import load_dataset, run_exploration
from cas_mining.settings import get_settings

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Upload a dataset to CAS and chart its distributions and missing values"
    )

    cfg = get_settings()

    parser.add_argument("--data", type=Path, default=cfg.dataset_csv, help="Path to the input CSV")
    parser.add_argument("--table", default=cfg.table_name, help="Name of the CAS table to create")
    parser.add_argument("--target", default=cfg.target, help="Target column")
    parser.add_argument("--rows", type=int, default=cfg.exploration_rows, help="Rows fetched for histograms")
    parser.add_argument("--out", type=Path, default=cfg.reports_dir / "exploration", help="Output directory")
    parser.add_argument("--server-caslib", default=cfg.source_caslib,
                        help="Load --data by file name from this server-side caslib instead of uploading it")
    parser.add_argument("--log_level", default=cfg.log_level, help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    args = parser.parse_args(argv)

    logging_setup.setup_logging(args.log_level)

    if not args.server_caslib:
        if not args.data.exists():
            logger.error(f"Dataset not found: {args.data}")
            return 1
        if args.target not in read_csv_header(args.data):
            logger.error(f"Target column {args.target!r} not found in {args.data}")
            return 1

    try:
        with CASClient(settings=cfg) as client:
            client.load_actionsets(["table", "simple"])
            table = load_dataset(client, args.table, args.data, args.server_caslib)
            result = run_exploration(client, table, args.target, args.rows, figures_dir=args.out)

        atomic_write_csv(result.summary, args.out / "summary_statistics.csv")
        atomic_write_csv(result.missing, args.out / "missing_values.csv")
        atomic_write_csv(result.target_freq, args.out / "target_distribution.csv")

    except Exception as e:
        logger.error(f"Exploration failed: {e}", exc_info=True)
        return 1

    print(result.missing.to_string(index=False))
    logger.info(f"✓ Exploration outputs written to {args.out}")
    return 0


if __name__ == "__main__":
    exit(main())
