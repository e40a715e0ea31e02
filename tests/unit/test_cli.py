"""Unit tests for the command-line entry points."""
from unittest.mock import MagicMock, patch

import pandas as pd

from cas_mining.adapters.cas.client import CASClient
from cas_mining.cli import explore_dataset, run_classification

from conftest import FakeCAS, default_handlers


def _comparison():
    return pd.DataFrame({
        "Model": ["Random Forest"], "AUC": [0.92], "Gini": [0.84], "KS": [0.7],
        "Accuracy": [0.93], "Misclassification": [0.07], "TP": [5], "FP": [1], "FN": [1], "TN": [23],
    })


class TestRunClassificationCli:
    """Tests for cas-mining-classify."""

    def test_success(self, hmeq_csv, tmp_path, capsys):
        result = MagicMock(comparison=_comparison())
        with patch.object(run_classification, "run_classification_pipeline", return_value=result) as run:
            code = run_classification.main([
                "--data", str(hmeq_csv),
                "--models", "random_forest", "--models", "decision_tree",
                "--reports-dir", str(tmp_path / "out"),
                "--no-save",
            ])

        assert code == 0
        kwargs = run.call_args.kwargs
        assert kwargs["families"] == ["random_forest", "decision_tree"]
        assert kwargs["save_tables"] is False
        assert kwargs["reports_dir"] == tmp_path / "out"
        assert "Random Forest" in capsys.readouterr().out

    def test_missing_dataset(self, tmp_path):
        with patch.object(run_classification, "run_classification_pipeline") as run:
            code = run_classification.main(["--data", str(tmp_path / "missing.csv")])

        assert code == 1
        run.assert_not_called()

    def test_pipeline_error_returns_1(self, hmeq_csv):
        with patch.object(run_classification, "run_classification_pipeline", side_effect=RuntimeError("boom")):
            assert run_classification.main(["--data", str(hmeq_csv)]) == 1


class TestExploreCli:
    """Tests for cas-mining-explore."""

    def test_writes_outputs(self, settings, hmeq_csv, tmp_path):
        conn = FakeCAS(default_handlers())
        out = tmp_path / "exploration"

        with patch.object(explore_dataset, "CASClient", return_value=CASClient(settings=settings, connection=conn)):
            code = explore_dataset.main(["--data", str(hmeq_csv), "--out", str(out), "--rows", "20"])

        assert code == 0
        assert (out / "missing_values.csv").exists()
        assert (out / "target_distribution.png").exists()
        assert conn.terminated == 1

    def test_server_side_source(self, settings, tmp_path):
        conn = FakeCAS(default_handlers())
        out = tmp_path / "exploration"

        with patch.object(explore_dataset, "CASClient", return_value=CASClient(settings=settings, connection=conn)):
            code = explore_dataset.main([
                "--data", "hmeq.csv", "--server-caslib", "public", "--out", str(out), "--rows", "20",
            ])

        assert code == 0
        assert conn.uploads == []
        load = conn.calls_to("table.loadTable")[0]
        assert (load["path"], load["caslib"]) == ("hmeq.csv", "public")
        assert (out / "summary_statistics.csv").exists()

    def test_unknown_target(self, hmeq_csv):
        assert explore_dataset.main(["--data", str(hmeq_csv), "--target", "DEFAULT"]) == 1
