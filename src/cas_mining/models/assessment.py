"""
Assessment of scored models.

ROC and lift tables come from percentile.assess on the server; this module
picks the confusion matrix at a cutoff, ranks models and reshapes the
curves for plotting.
"""

import logging
from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import auc

from cas_mining.adapters.cas.client import CASClient
from cas_mining.features.table_schema import PARTITION_COLUMN, complementary_level, probability_column
from cas_mining.models.model_families import ModelFamily
from cas_mining.models.training import ScoredModel
from cas_mining.preprocessing.partition import partition_filter

logger = logging.getLogger(__name__)


@dataclass
class Assessment:
    family: ModelFamily
    roc: pd.DataFrame
    lift: pd.DataFrame
    event: str = "1"

    @property
    def label(self) -> str:
        return self.family.label


@dataclass(frozen=True)
class ConfusionMatrix:
    tn: int
    fp: int
    fn: int
    tp: int
    cutoff: float
    event: str = "1"

    @property
    def total(self) -> int:
        return self.tn + self.fp + self.fn + self.tp

    @property
    def accuracy(self) -> float:
        return (self.tp + self.tn) / self.total if self.total else float("nan")

    @property
    def misclassification(self) -> float:
        return (self.fp + self.fn) / self.total if self.total else float("nan")

    @property
    def sensitivity(self) -> float:
        return self.tp / (self.tp + self.fn) if (self.tp + self.fn) else float("nan")

    @property
    def specificity(self) -> float:
        return self.tn / (self.tn + self.fp) if (self.tn + self.fp) else float("nan")

    @property
    def levels(self) -> tuple[str, str]:
        """(non-event, event) target levels, in the row and column order of as_array."""
        return complementary_level(self.event), self.event

    def as_array(self) -> np.ndarray:
        """2x2 matrix in sklearn layout: rows = actual, columns = predicted, both ordered as `levels`."""
        return np.array([[self.tn, self.fp], [self.fn, self.tp]])


def assess_model(
    client: CASClient,
    scored: ScoredModel,
    target: str,
    event: str = "1",
    partition_column: str = PARTITION_COLUMN,
) -> Assessment:
    """
    Compute ROC and lift tables for one scored model on the validation partition.

    Args:
        client: Connected CAS client.
        scored: Scored model (table holds P_<target><level> columns).
        target: Binary target column.
        event: Target level treated as the event.
        partition_column: Partition indicator column.

    Returns:
        Assessment with ROC rows sorted by CutOff and lift rows sorted by Depth.
    """
    non_event = complementary_level(event)
    family = scored.family

    logger.info(f"Assessing {family.label} on {scored.table} (validation partition)")
    result = client.invoke(
        "percentile.assess",
        table=partition_filter(scored.table, "validation", partition_column),
        inputs=[probability_column(target, event)],
        response=target,
        event=event,
        pVar=[probability_column(target, non_event)],
        pEvent=[non_event],
    )

    roc = client.table(result, "ROCInfo", "percentile.assess")
    lift = client.table(result, "LIFTInfo", "percentile.assess")

    roc = roc.sort_values("CutOff").reset_index(drop=True)
    lift = lift.sort_values("Depth").reset_index(drop=True)
    roc.insert(0, "Model", family.label)
    lift.insert(0, "Model", family.label)

    return Assessment(family=family, roc=roc, lift=lift, event=event)


def confusion_at_cutoff(roc: pd.DataFrame, cutoff: float = 0.5, event: str = "1") -> ConfusionMatrix:
    """Confusion matrix from the ROC row whose CutOff is nearest to `cutoff`; TP and FN count `event` rows."""
    if not 0.0 <= cutoff <= 1.0:
        raise ValueError(f"cutoff must be in [0, 1], got {cutoff}")
    if roc.empty:
        raise ValueError("ROC table is empty")

    row = roc.loc[(roc["CutOff"] - cutoff).abs().idxmin()]
    return ConfusionMatrix(
        tn=int(row["TN"]),
        fp=int(row["FP"]),
        fn=int(row["FN"]),
        tp=int(row["TP"]),
        cutoff=float(row["CutOff"]),
        event=event,
    )


def roc_auc(roc: pd.DataFrame) -> float:
    """
    Area under the ROC curve.

    Uses the engine's C statistic when present; otherwise integrates the
    (FPR, Sensitivity) points, closed at (0, 0) and (1, 1).
    """
    if "C" in roc.columns and roc["C"].notna().any():
        return float(roc["C"].dropna().iloc[0])

    points = roc[["FPR", "Sensitivity"]].dropna()
    fpr = np.concatenate(([0.0], points["FPR"].to_numpy(dtype=float), [1.0]))
    tpr = np.concatenate(([0.0], points["Sensitivity"].to_numpy(dtype=float), [1.0]))
    order = np.lexsort((tpr, fpr))
    return float(auc(fpr[order], tpr[order]))


def compare_models(assessments: Sequence[Assessment], cutoff: float = 0.5) -> pd.DataFrame:
    """
    One row per model with its headline metrics, best model first.

    Models are ranked by misclassification rate at `cutoff`, ties broken by
    higher AUC.
    """
    rows = []
    for assessment in assessments:
        cm = confusion_at_cutoff(assessment.roc, cutoff, assessment.event)
        roc = assessment.roc
        area = roc_auc(roc)
        rows.append({
            "Model": assessment.label,
            "AUC": area,
            "Gini": float(roc["GINI"].iloc[0]) if "GINI" in roc.columns else 2 * area - 1,
            "KS": float(roc["KS"].max()) if "KS" in roc.columns else float("nan"),
            "Accuracy": cm.accuracy,
            "Misclassification": cm.misclassification,
            "TP": cm.tp,
            "FP": cm.fp,
            "FN": cm.fn,
            "TN": cm.tn,
        })

    comparison = pd.DataFrame(rows, columns=[
        "Model", "AUC", "Gini", "KS", "Accuracy", "Misclassification", "TP", "FP", "FN", "TN",
    ])
    comparison = comparison.sort_values(
        ["Misclassification", "AUC"], ascending=[True, False]
    ).reset_index(drop=True)

    if not comparison.empty:
        best = comparison.iloc[0]
        logger.info(
            f"Best model at cutoff {cutoff}: {best['Model']} "
            f"(misclassification {best['Misclassification']:.2%}, AUC {best['AUC']:.4f})"
        )
    return comparison


def confusion_matrices(assessments: Sequence[Assessment], cutoff: float = 0.5) -> dict[str, ConfusionMatrix]:
    return {a.label: confusion_at_cutoff(a.roc, cutoff, a.event) for a in assessments}


def stack_curves(assessments: Sequence[Assessment], kind: Literal["roc", "lift"] = "roc") -> pd.DataFrame:
    """All models' ROC (or lift) rows in one long frame, tagged by Model."""
    frames = [a.roc if kind == "roc" else a.lift for a in assessments]
    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True)


def format_comparison(comparison: pd.DataFrame) -> str:
    """Plain-text model comparison table for logs and terminal output."""
    table = comparison.copy()
    for col in ("Accuracy", "Misclassification"):
        table[col] = table[col].map(lambda v: f"{v:.2%}")
    for col in ("AUC", "Gini", "KS"):
        table[col] = table[col].map(lambda v: f"{v:.4f}")
    table.index = range(1, len(table) + 1)
    return table.to_string()
