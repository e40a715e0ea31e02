"""
Classification Pipeline

Runs the full data-mining workflow against a CAS server:

    connect -> load action sets -> load data -> explore -> impute -> partition
            -> train / score / assess each model family -> compare
            -> charts and CSV reports -> save tables -> disconnect

Every statistic and model lives on the server; the client only reshapes
result tables, renders charts and writes reports.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence
import logging

import pandas as pd
from tqdm.auto import tqdm

from cas_mining.adapters.cas.client import CASClient
from cas_mining.features.table_schema import PARTITION_COLUMN
from cas_mining.io.readers import read_csv_header
from cas_mining.io.writers import atomic_write_csv, save_figure
from cas_mining.models import assessment as assess
from cas_mining.models.model_families import resolve_families, required_actionsets
from cas_mining.models.training import score_model, train_model
from cas_mining.preprocessing import exploration
from cas_mining.preprocessing.imputation import impute_missing
from cas_mining.preprocessing.partition import partition_table
from cas_mining.settings import Settings, get_settings
from cas_mining.utils import visualization as viz

logger = logging.getLogger(__name__)


@dataclass
class ExplorationResult:
    summary: pd.DataFrame
    missing: pd.DataFrame
    target_freq: pd.DataFrame
    sample: pd.DataFrame
    figures: dict[str, Path] = field(default_factory=dict)


@dataclass
class WorkflowResult:
    table: str
    exploration: ExplorationResult
    assessments: list[assess.Assessment]
    comparison: pd.DataFrame
    confusion: dict[str, assess.ConfusionMatrix]
    figures: dict[str, Path] = field(default_factory=dict)
    reports: dict[str, Path] = field(default_factory=dict)
    saved_tables: list[str] = field(default_factory=list)


def load_dataset(
    client: CASClient,
    table_name: str,
    dataset_csv: Optional[Path] = None,
    source_caslib: Optional[str] = None,
) -> str:
    """Upload the local CSV, or load it from a server caslib when one is given."""
    if source_caslib:
        return client.load_server_file(dataset_csv.name, source_caslib, table_name)
    return client.upload_csv(dataset_csv, table_name)


def run_exploration(
    client: CASClient,
    table: str,
    target: str,
    rows: int,
    figures_dir: Optional[Path] = None,
) -> ExplorationResult:
    """
    Exploratory statistics and charts for a loaded table.

    Parameters:
    client (CASClient): Connected CAS client.
    table (str): CAS table name.
    target (str): Target column.
    rows (int): Rows fetched client-side for the histograms.
    figures_dir (Optional[Path]): Where to save PNGs; nothing is saved when None.

    Returns:
    ExplorationResult: Summary, missing profile, target frequency, sample and figure paths.
    """
    logger.info("=== Exploration ===")
    summary = exploration.summarize(client, table)
    missing = exploration.missing_profile(client, table)
    target_freq = exploration.target_distribution(client, table, target)
    sample = exploration.fetch_sample(client, table, rows)

    result = ExplorationResult(summary=summary, missing=missing, target_freq=target_freq, sample=sample)
    if figures_dir is None:
        return result

    numeric = [c for c in sample.select_dtypes(include="number").columns if c != target]
    if numeric:
        fig, _ = viz.plot_numeric_distributions(sample, numeric)
        result.figures["distributions"] = save_figure(fig, figures_dir / "distributions.png")
    if (missing["NMiss"] > 0).any():
        fig, _ = viz.plot_missing_values(missing)
        result.figures["missing"] = save_figure(fig, figures_dir / "missing_values.png")
    fig, _ = viz.plot_target_distribution(target_freq, target)
    result.figures["target"] = save_figure(fig, figures_dir / "target_distribution.png")
    return result


def _write_assessment_artifacts(
    result: WorkflowResult,
    reports_dir: Path,
    figures_dir: Path,
) -> None:
    roc = assess.stack_curves(result.assessments, "roc")
    lift = assess.stack_curves(result.assessments, "lift")

    reports = {
        "comparison": (result.comparison, reports_dir / "model_comparison.csv"),
        "roc": (roc, reports_dir / "roc.csv"),
        "lift": (lift, reports_dir / "lift.csv"),
        "summary": (result.exploration.summary, reports_dir / "summary_statistics.csv"),
        "missing": (result.exploration.missing, reports_dir / "missing_values.csv"),
    }
    for name, (df, path) in reports.items():
        atomic_write_csv(df, path)
        result.reports[name] = path
        logger.info(f"Wrote {path}")

    aucs = dict(zip(result.comparison["Model"], result.comparison["AUC"]))
    fig, _ = viz.plot_roc_curves(roc, aucs)
    result.figures["roc"] = save_figure(fig, figures_dir / "roc_curves.png")
    fig, _ = viz.plot_lift_curves(lift)
    result.figures["lift"] = save_figure(fig, figures_dir / "lift_curves.png")
    fig, _ = viz.plot_confusion_matrices(result.confusion)
    result.figures["confusion"] = save_figure(fig, figures_dir / "confusion_matrices.png")
    fig, _ = viz.plot_model_comparison(result.comparison)
    result.figures["comparison"] = save_figure(fig, figures_dir / "model_comparison.png")


def run_classification_pipeline(
    dataset_csv: Optional[Path] = None,
    table_name: Optional[str] = None,
    target: Optional[str] = None,
    families: Optional[Sequence[str]] = None,
    client: Optional[CASClient] = None,
    reports_dir: Optional[Path] = None,
    figures_dir: Optional[Path] = None,
    save_tables: bool = True,
    source_caslib: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> WorkflowResult:
    """
    Train, score and compare classifier families on a CAS server.

    Unset parameters fall back to application settings. When no client is
    passed, one is created and its session is always ended before returning.

    Parameters:
    dataset_csv (Path): Local CSV (or file name inside `source_caslib`).
    table_name (str): Name of the in-memory CAS table.
    target (str): Binary target column.
    families (Sequence[str]): Model family names to train, in order.
    client (CASClient): Pre-built client; the caller keeps ownership.
    reports_dir (Path): Output directory for CSV reports.
    figures_dir (Path): Output directory for PNG charts.
    save_tables (bool): Persist prepared and scored tables to the output caslib.
    source_caslib (str): Load the dataset server-side from this caslib.
    settings (Settings): Settings override.

    Returns:
    WorkflowResult: Exploration tables, assessments, comparison and artefact paths.
    """
    cfg = settings or (client.settings if client is not None else get_settings())
    dataset_csv = Path(dataset_csv or cfg.dataset_csv)
    table_name = table_name or cfg.table_name
    target = target or cfg.target
    source_caslib = source_caslib or cfg.source_caslib
    reports_dir = Path(reports_dir or cfg.reports_dir)
    figures_dir = Path(figures_dir or cfg.figures_dir)
    model_families = resolve_families(families or cfg.model_families)

    logger.info("=== Classification Pipeline ===")
    logger.info(f"Dataset: {dataset_csv} -> CAS table {table_name}, target {target}")
    logger.info(f"Models: {', '.join(f.label for f in model_families)}")

    if not source_caslib:
        missing_cols = {target} - set(read_csv_header(dataset_csv))
        if missing_cols:
            raise KeyError(f"Missing expected CSV columns: {sorted(missing_cols)}")

    owns_client = client is None
    client = client or CASClient(settings=cfg)
    try:
        client.connect()
        client.load_actionsets(required_actionsets(model_families))
        table = load_dataset(client, table_name, dataset_csv, source_caslib)

        explored = run_exploration(client, table, target, cfg.exploration_rows, figures_dir)

        roles = exploration.column_roles(client.column_info(table), target, exclude=[PARTITION_COLUMN])
        prepped_table = f"{table}_prepped"
        imputed = impute_missing(
            client, table, roles, prepped_table,
            method_continuous=cfg.impute_continuous,
            method_nominal=cfg.impute_nominal,
        )
        partitioned = partition_table(
            client, imputed.table, prepped_table,
            validation_pct=cfg.validation_pct,
            seed=cfg.random_seed,
        )

        logger.info("=== Modeling ===")
        assessments = []
        scored_tables = []
        for family in tqdm(model_families, desc="Model families"):
            trained = train_model(
                client, family, partitioned.table, target,
                inputs=imputed.inputs, nominals=imputed.nominals, seed=cfg.random_seed,
            )
            scored = score_model(client, trained, partitioned.table, target)
            scored_tables.append(scored.table)
            assessments.append(assess.assess_model(client, scored, target, event=cfg.event))

        comparison = assess.compare_models(assessments, cfg.cutoff)
        logger.info("Model comparison:\n" + assess.format_comparison(comparison))

        result = WorkflowResult(
            table=partitioned.table,
            exploration=explored,
            assessments=assessments,
            comparison=comparison,
            confusion=assess.confusion_matrices(assessments, cfg.cutoff),
            figures=dict(explored.figures),
        )
        _write_assessment_artifacts(result, reports_dir, figures_dir)

        if save_tables:
            for name in [partitioned.table, *scored_tables]:
                result.saved_tables.append(client.save_table(name))

    except Exception:
        if owns_client:
            client.close(suppress_errors=True)
        raise

    if owns_client:
        client.close()
    return result
