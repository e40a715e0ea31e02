"""
Visualization utilities for dataset exploration and model assessment.

Every function returns (figure, axes) and leaves showing/saving to the caller.
"""

import math
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.ticker import MultipleLocator, PercentFormatter
from sklearn.metrics import ConfusionMatrixDisplay

from cas_mining.models.assessment import ConfusionMatrix


def _grid(n: int, ncols: int) -> Tuple[int, int]:
    ncols = max(1, min(ncols, n))
    return math.ceil(n / ncols), ncols


def plot_numeric_distributions(
    sample: pd.DataFrame,
    columns: Optional[Sequence[str]] = None,
    ncols: int = 3,
    bins: int = 30,
    figsize_per_panel: Tuple[float, float] = (4.0, 3.0),
    title: str = "Numeric Input Distributions"
) -> Tuple[plt.Figure, np.ndarray]:
    """
    Histogram per numeric column of a (client-side) sample.

    Args:
        sample: Rows fetched from the CAS table
        columns: Columns to plot. Default: all numeric columns
        ncols: Panels per row
        bins: Histogram bins
        figsize_per_panel: Size of one panel (width, height)
        title: Overall figure title

    Returns:
        Tuple of (figure, flat axes array); unused panels are hidden
    """
    if columns is None:
        columns = sample.select_dtypes(include="number").columns.tolist()
    columns = list(columns)
    if not columns:
        raise ValueError("No numeric columns to plot")

    nrows, ncols = _grid(len(columns), ncols)
    fig, axes = plt.subplots(
        nrows, ncols,
        figsize=(figsize_per_panel[0] * ncols, figsize_per_panel[1] * nrows),
        squeeze=False,
    )
    axes = axes.ravel()

    for ax, col in zip(axes, columns):
        values = pd.to_numeric(sample[col], errors="coerce").dropna()
        n_missing = len(sample) - len(values)
        ax.hist(values, bins=bins, alpha=0.8, color="tab:blue", edgecolor="white")
        ax.set_title(f"{col} (missing: {n_missing})", fontsize=10)
        ax.grid(True, linewidth=0.5, alpha=0.5)

    for ax in axes[len(columns):]:
        ax.axis("off")

    fig.suptitle(title, fontsize=14)
    fig.tight_layout()
    return fig, axes


def plot_missing_values(
    profile: pd.DataFrame,
    figsize: Tuple[int, int] = (8, 5),
    title: str = "Missing Values by Column"
) -> Tuple[plt.Figure, plt.Axes]:
    """
    Horizontal bar chart of PctMiss per column (columns without missing values are skipped).

    Args:
        profile: Output of exploration.missing_profile
        figsize: Figure size (width, height)
        title: Axes title
    """
    missing = profile[profile["NMiss"] > 0].sort_values("PctMiss")

    fig, ax = plt.subplots(figsize=figsize)
    bars = ax.barh(missing["Column"], missing["PctMiss"], color="tab:orange")
    for bar, n in zip(bars, missing["NMiss"]):
        ax.text(bar.get_width(), bar.get_y() + bar.get_height() / 2,
                f" {int(n)}", va="center", fontsize=8)

    ax.xaxis.set_major_formatter(PercentFormatter(100))
    ax.set_xlabel("Share of rows missing")
    ax.set_title(title)
    ax.grid(True, axis="x", linewidth=0.5, alpha=0.5)
    fig.tight_layout()
    return fig, ax


def plot_target_distribution(
    freq: pd.DataFrame,
    target: str,
    figsize: Tuple[int, int] = (5, 4)
) -> Tuple[plt.Figure, plt.Axes]:
    """Bar chart of target level frequencies, annotated with percentages."""
    fig, ax = plt.subplots(figsize=figsize)
    bars = ax.bar(freq["Level"].astype(str), freq["Frequency"], color=["tab:green", "tab:red"])
    for bar, pct in zip(bars, freq["Percent"]):
        ax.annotate(f"{pct:.1f}%", (bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    ha="center", va="bottom", fontsize=9)
    ax.set_xlabel(target)
    ax.set_ylabel("count")
    ax.set_title(f"Distribution of {target}")
    fig.tight_layout()
    return fig, ax


def plot_roc_curves(
    roc: pd.DataFrame,
    aucs: Optional[Dict[str, float]] = None,
    figsize: Tuple[int, int] = (7, 6),
    title: str = "ROC Curves (validation)"
) -> Tuple[plt.Figure, plt.Axes]:
    """
    Overlay ROC curves of several models.

    Args:
        roc: Long frame with Model, FPR and Sensitivity (assessment.stack_curves)
        aucs: Optional model -> AUC mapping shown in the legend
        figsize: Figure size (width, height)
        title: Axes title

    Example:
        >>> roc = stack_curves(assessments, kind="roc")
        >>> fig, ax = plot_roc_curves(roc, {a.label: roc_auc(a.roc) for a in assessments})
    """
    aucs = aucs or {}
    fig, ax = plt.subplots(figsize=figsize)

    for model, curve in roc.groupby("Model", sort=False):
        curve = curve.sort_values(["FPR", "Sensitivity"])
        label = f"{model} (AUC={aucs[model]:.3f})" if model in aucs else str(model)
        ax.plot(curve["FPR"], curve["Sensitivity"], linewidth=1.8, label=label)

    ax.plot([0, 1], [0, 1], linestyle="--", color="gray", linewidth=1, label="Random")
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1.01)
    ax.xaxis.set_major_locator(MultipleLocator(0.2))
    ax.yaxis.set_major_locator(MultipleLocator(0.2))
    ax.set_xlabel("False positive rate (1 - specificity)")
    ax.set_ylabel("True positive rate (sensitivity)")
    ax.set_title(title)
    ax.legend(loc="lower right", fontsize=9)
    ax.grid(True, linewidth=0.5, alpha=0.5)
    fig.tight_layout()
    return fig, ax


def plot_lift_curves(
    lift: pd.DataFrame,
    cumulative: bool = True,
    figsize: Tuple[int, int] = (7, 5),
    title: Optional[str] = None
) -> Tuple[plt.Figure, plt.Axes]:
    """Lift (or cumulative lift) by depth for each model."""
    column = "CumLift" if cumulative else "Lift"
    fig, ax = plt.subplots(figsize=figsize)

    for model, curve in lift.groupby("Model", sort=False):
        curve = curve.sort_values("Depth")
        ax.plot(curve["Depth"], curve[column], linewidth=1.8, marker="o", markersize=3, label=str(model))

    ax.axhline(1.0, linestyle="--", color="gray", linewidth=1)
    ax.set_xlabel("Depth (%)")
    ax.set_ylabel("Cumulative lift" if cumulative else "Lift")
    ax.set_title(title or ("Cumulative Lift (validation)" if cumulative else "Lift (validation)"))
    ax.legend(fontsize=9)
    ax.grid(True, linewidth=0.5, alpha=0.5)
    fig.tight_layout()
    return fig, ax


def plot_confusion_matrices(
    matrices: Dict[str, ConfusionMatrix],
    labels: Optional[Sequence[str]] = None,
    ncols: int = 2,
    figsize_per_panel: Tuple[float, float] = (4.0, 3.6)
) -> Tuple[plt.Figure, np.ndarray]:
    """
    One confusion matrix panel per model.

    Args:
        matrices: Model -> ConfusionMatrix (assessment.confusion_matrices)
        labels: Display labels for the non-event and event levels. Default: each matrix's own levels
        ncols: Panels per row
        figsize_per_panel: Size of one panel (width, height)
    """
    if not matrices:
        raise ValueError("No confusion matrices to plot")

    nrows, ncols = _grid(len(matrices), ncols)
    fig, axes = plt.subplots(
        nrows, ncols,
        figsize=(figsize_per_panel[0] * ncols, figsize_per_panel[1] * nrows),
        squeeze=False,
    )
    axes = axes.ravel()

    for ax, (model, cm) in zip(axes, matrices.items()):
        display = ConfusionMatrixDisplay(confusion_matrix=cm.as_array(), display_labels=list(labels or cm.levels))
        display.plot(ax=ax, cmap="Blues", colorbar=False, values_format="d")
        ax.set_title(f"{model}\ncutoff={cm.cutoff:.2f}, misclass={cm.misclassification:.2%}", fontsize=10)

    for ax in axes[len(matrices):]:
        ax.axis("off")

    fig.tight_layout()
    return fig, axes


def plot_model_comparison(
    comparison: pd.DataFrame,
    metrics: Sequence[str] = ("Misclassification", "AUC"),
    figsize: Tuple[int, int] = (10, 4)
) -> Tuple[plt.Figure, np.ndarray]:
    """Side-by-side bar charts of comparison metrics, models in ranking order."""
    fig, axes = plt.subplots(1, len(metrics), figsize=figsize, squeeze=False)
    axes = axes.ravel()

    for ax, metric in zip(axes, metrics):
        ax.barh(comparison["Model"], comparison[metric], color="tab:blue")
        ax.invert_yaxis()  # best model on top
        for y, value in enumerate(comparison[metric]):
            ax.text(value, y, f" {value:.3f}", va="center", fontsize=8)
        ax.set_title(metric)
        ax.grid(True, axis="x", linewidth=0.5, alpha=0.5)

    fig.tight_layout()
    return fig, axes
