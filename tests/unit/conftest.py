"""Shared fixtures: an in-memory stand-in for a swat CAS connection."""
import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from cas_mining.adapters.cas.client import CASClient
from cas_mining.settings import CASSettings, Settings


class FakeResults(dict):
    """Mimics swat.CASResults: a mapping of result tables plus status attributes."""

    def __init__(self, tables=None, severity=0, reason=None, messages=None):
        super().__init__(tables or {})
        self.severity = severity
        self.reason = reason
        self.messages = messages or []


class FakeCAS:
    """Records every action call and answers from per-action handlers."""

    def __init__(self, handlers=None):
        self.handlers = dict(handlers or {})
        self.calls = []
        self.uploads = []
        self.terminated = 0

    def retrieve(self, _name_, **kwargs):
        self.calls.append((_name_, kwargs))
        handler = self.handlers.get(_name_)
        if handler is None:
            return FakeResults()
        if callable(handler):
            return handler(**kwargs)
        return handler

    def upload_file(self, data, importoptions=None, casout=None, **kwargs):
        self.uploads.append({"data": data, "importoptions": importoptions, "casout": casout})
        return casout["name"]

    def terminate(self):
        self.terminated += 1

    def action_names(self):
        return [name for name, _ in self.calls]

    def calls_to(self, name):
        return [kwargs for call, kwargs in self.calls if call == name]


# Validation-partition outcomes at cutoff 0.5 per model prefix: (TP, FP, FN, TN, C)
MODEL_OUTCOMES = {
    "DT": (4, 3, 2, 21, 0.80),
    "RF": (5, 1, 1, 23, 0.92),
    "GBT": (5, 2, 1, 22, 0.90),
    "NN": (3, 2, 3, 22, 0.78),
}


def roc_table(tp, fp, fn, tn, c):
    """ROCInfo-shaped frame with cutoffs 1.0, 0.5 and 0.0 (unsorted, as the server may return)."""
    pos, neg = tp + fn, fp + tn
    rows = []
    for cutoff, (rtp, rfp, rfn, rtn) in (
        (1.0, (0, 0, pos, neg)),
        (0.5, (tp, fp, fn, tn)),
        (0.0, (pos, neg, 0, 0)),
    ):
        sens = rtp / pos
        spec = rtn / neg
        rows.append({
            "Variable": "P_BAD1", "Event": "1", "CutOff": cutoff,
            "TP": rtp, "FP": rfp, "FN": rfn, "TN": rtn,
            "Sensitivity": sens, "Specificity": spec, "FPR": 1 - spec,
            "ACC": (rtp + rtn) / (pos + neg), "KS": sens - (1 - spec),
            "C": c, "GINI": 2 * c - 1,
        })
    return pd.DataFrame(rows)


def lift_table(c):
    depths = [30, 10, 20]
    return pd.DataFrame({
        "Variable": "P_BAD1",
        "Event": "1",
        "Depth": depths,
        "Lift": [c * 3 / (d / 10) for d in depths],
        "CumLift": [c * 4 / (d / 10) for d in depths],
    })


COLUMN_INFO = pd.DataFrame({
    "Column": ["BAD", "LOAN", "MORTDUE", "REASON", "JOB", "DEBTINC"],
    "ID": [1, 2, 3, 4, 5, 6],
    "Type": ["double", "double", "double", "varchar", "varchar", "double"],
})


def _freq(table, inputs, **kwargs):
    if inputs == ["_PartInd_"]:
        return FakeResults({"Frequency": pd.DataFrame({
            "Column": "_PartInd_", "FmtVar": ["0", "1"], "Level": [1, 2], "Frequency": [70, 30],
        })})
    return FakeResults({"Frequency": pd.DataFrame({
        "Column": inputs[0], "FmtVar": ["0", "1"], "Level": [1, 2], "Frequency": [80, 20],
    })})


def _impute(inputs, **kwargs):
    return FakeResults({"ImputeInfo": pd.DataFrame({
        "Variable": inputs,
        "ImputeTech": ["Median" if c in ("LOAN", "MORTDUE", "DEBTINC") else "Mode" for c in inputs],
        "ResultVar": [f"IMP_{c}" for c in inputs],
        "N": 100,
        "NMiss": [0, 5, 3, 4, 9][:len(inputs)],
    })})


def _assess(table, **kwargs):
    prefix = table["name"].replace("_scored_", "")
    tp, fp, fn, tn, c = MODEL_OUTCOMES[prefix]
    return FakeResults({"ROCInfo": roc_table(tp, fp, fn, tn, c), "LIFTInfo": lift_table(c)})


def _fetch(table, to, **kwargs):
    rng = np.random.default_rng(0)
    n = min(to, 20)
    return FakeResults({"Fetch": pd.DataFrame({
        "BAD": rng.integers(0, 2, n).astype(float),
        "LOAN": rng.normal(18000, 5000, n),
        "MORTDUE": np.where(np.arange(n) % 5 == 0, np.nan, rng.normal(70000, 20000, n)),
        "REASON": ["HomeImp" if i % 2 else "DebtCon" for i in range(n)],
        "JOB": ["Other" if i % 3 else "Office" for i in range(n)],
        "DEBTINC": rng.normal(33, 8, n),
    })})


def default_handlers():
    score_info = FakeResults({"ScoreInfo": pd.DataFrame({
        "Descr": ["Number of Observations Read", "Misclassification Error (%)"],
        "Value": ["100", "10.0"],
    })})
    model_info = FakeResults({"ModelInfo": pd.DataFrame({
        "Descr": ["Number of Trees"], "Value": [1.0],
    })})
    handlers = {
        "table.columnInfo": FakeResults({"ColumnInfo": COLUMN_INFO}),
        "table.tableInfo": FakeResults({"TableInfo": pd.DataFrame({"Name": ["HMEQ"], "Rows": [100], "Columns": [6]})}),
        "table.fetch": _fetch,
        "simple.summary": FakeResults({"Summary": pd.DataFrame({
            "Column": ["BAD", "LOAN", "MORTDUE", "DEBTINC"],
            "N": [100, 100, 95, 91], "NMiss": [0, 0, 5, 9],
            "Mean": [0.2, 18000.0, 70000.0, 33.5],
        })}),
        "simple.distinct": FakeResults({"Distinct": pd.DataFrame({
            "Column": ["BAD", "LOAN", "MORTDUE", "REASON", "JOB", "DEBTINC"],
            "NDistinct": [2, 90, 88, 3, 7, 85],
            "NMiss": [0.0, 0.0, 5.0, 4.0, 9.0, 9.0],
            "Trunc": 0,
        })}),
        "simple.freq": _freq,
        "dataPreprocess.impute": _impute,
        "percentile.assess": _assess,
    }
    for action in ("decisionTree.dtreeTrain", "decisionTree.forestTrain",
                   "decisionTree.gbtreeTrain", "neuralNet.annTrain"):
        handlers[action] = model_info
    for action in ("decisionTree.dtreeScore", "decisionTree.forestScore",
                   "decisionTree.gbtreeScore", "neuralNet.annScore"):
        handlers[action] = score_info
    return handlers


@pytest.fixture
def settings(tmp_path):
    return Settings(
        reports_dir=tmp_path / "reports",
        figures_dir=tmp_path / "reports" / "figures",
        dataset_csv=tmp_path / "hmeq.csv",
        cas=CASSettings(host="cas.example.com", port=5570, username="analyst", password="secret"),
    )


@pytest.fixture
def fake_cas():
    return FakeCAS(default_handlers())


@pytest.fixture
def client(settings, fake_cas):
    return CASClient(settings=settings, connection=fake_cas)


@pytest.fixture
def hmeq_csv(settings):
    settings.dataset_csv.write_text(
        "BAD,LOAN,MORTDUE,REASON,JOB,DEBTINC\n"
        "1,1100,25860,HomeImp,Other,\n"
        "0,1500,,HomeImp,Office,34.8\n",
        encoding="utf-8",
    )
    return settings.dataset_csv
