from pathlib import Path
import pandas as pd

def _ensure_exists(path: Path):
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"file not found: {p}")

def read_csv(path: Path, **kwargs) -> pd.DataFrame:
    _ensure_exists(path)
    return pd.read_csv(path, encoding="utf-8", **kwargs)

def read_csv_header(path: Path) -> list[str]:
    """Column names of a CSV file, without loading its rows."""
    return read_csv(path, nrows=0).columns.tolist()
