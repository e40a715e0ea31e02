"""Unit tests for plotting helpers (Agg backend, nothing is shown)."""
import matplotlib.pyplot as plt
import pandas as pd
import pytest

from cas_mining.models.assessment import ConfusionMatrix, assess_model, stack_curves
from cas_mining.models.model_families import MODEL_FAMILIES
from cas_mining.models.training import ScoredModel
from cas_mining.utils import visualization as viz


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture
def assessments(client):
    return [
        assess_model(client, ScoredModel(family=f, table=f"_scored_{f.prefix}"), "BAD")
        for f in MODEL_FAMILIES.values()
    ]


def test_numeric_distributions_hides_unused_panels(client):
    sample = client.fetch("hmeq", 20)

    fig, axes = viz.plot_numeric_distributions(sample, ["LOAN", "MORTDUE", "DEBTINC", "BAD"], ncols=3)

    assert len(axes) == 6
    assert axes[1].get_title() == "MORTDUE (missing: 4)"
    assert not axes[4].axison and not axes[5].axison


def test_numeric_distributions_requires_numeric_columns():
    with pytest.raises(ValueError):
        viz.plot_numeric_distributions(pd.DataFrame({"JOB": ["Other", "Mgr"]}))


def test_missing_values_skips_complete_columns():
    profile = pd.DataFrame({
        "Column": ["DEBTINC", "JOB", "BAD"],
        "NDistinct": [80, 7, 2],
        "NMiss": [9, 4, 0],
        "PctMiss": [9.0, 4.0, 0.0],
    })

    fig, ax = viz.plot_missing_values(profile)

    assert len(ax.patches) == 2


def test_target_distribution():
    freq = pd.DataFrame({"Level": ["0", "1"], "Frequency": [80, 20], "Percent": [80.0, 20.0]})

    fig, ax = viz.plot_target_distribution(freq, "BAD")

    assert ax.get_title() == "Distribution of BAD"
    assert [t.get_text() for t in ax.texts] == ["80.0%", "20.0%"]


def test_roc_curves_one_line_per_model_plus_diagonal(assessments):
    roc = stack_curves(assessments, "roc")

    fig, ax = viz.plot_roc_curves(roc, {"Random Forest": 0.92})

    assert len(ax.lines) == 5
    labels = [t.get_text() for t in ax.get_legend().get_texts()]
    assert "Random Forest (AUC=0.920)" in labels
    assert "Decision Tree" in labels


def test_lift_curves(assessments):
    fig, ax = viz.plot_lift_curves(stack_curves(assessments, "lift"))

    assert len(ax.lines) == 5  # four models + baseline
    assert ax.get_ylabel() == "Cumulative lift"


def test_confusion_matrices():
    matrices = {
        "Decision Tree": ConfusionMatrix(tn=21, fp=3, fn=2, tp=4, cutoff=0.5),
        "Random Forest": ConfusionMatrix(tn=23, fp=1, fn=1, tp=5, cutoff=0.5),
        "Neural Network": ConfusionMatrix(tn=22, fp=2, fn=3, tp=3, cutoff=0.5),
    }

    fig, axes = viz.plot_confusion_matrices(matrices)

    assert len(axes) == 4
    assert axes[0].get_title().startswith("Decision Tree")
    assert not axes[3].axison


def _row_totals_by_label(ax):
    labels = [t.get_text() for t in ax.get_yticklabels()]
    values = ax.images[0].get_array()
    return {label: int(values[i].sum()) for i, label in enumerate(labels)}


def test_confusion_matrix_rows_labelled_by_level():
    fig, axes = viz.plot_confusion_matrices({
        "Decision Tree": ConfusionMatrix(tn=21, fp=3, fn=2, tp=4, cutoff=0.5),
    })

    assert _row_totals_by_label(axes[0]) == {"0": 24, "1": 6}


def test_confusion_matrix_rows_labelled_for_event_zero():
    # event "0": TP and FN count the 10 actual "0" rows
    cm = ConfusionMatrix(tn=85, fp=5, fn=2, tp=8, cutoff=0.5, event="0")

    fig, axes = viz.plot_confusion_matrices({"Decision Tree": cm})

    assert _row_totals_by_label(axes[0]) == {"1": 90, "0": 10}


def test_confusion_matrices_empty():
    with pytest.raises(ValueError):
        viz.plot_confusion_matrices({})


def test_model_comparison():
    comparison = pd.DataFrame({
        "Model": ["Random Forest", "Decision Tree"],
        "Misclassification": [0.07, 0.17],
        "AUC": [0.92, 0.80],
    })

    fig, axes = viz.plot_model_comparison(comparison)

    assert [ax.get_title() for ax in axes] == ["Misclassification", "AUC"]
    assert len(axes[0].patches) == 2
