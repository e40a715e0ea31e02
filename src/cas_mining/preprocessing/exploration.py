"""
Exploratory statistics for a CAS table.

All statistics are computed server-side; this module only reshapes the
returned tables for logging and plotting.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

import pandas as pd

from cas_mining.adapters.cas.client import CASClient
from cas_mining.features.table_schema import NOMINAL_TYPES

logger = logging.getLogger(__name__)


@dataclass
class ColumnRoles:
    """Input columns split by measurement level."""
    interval: list[str] = field(default_factory=list)
    nominal: list[str] = field(default_factory=list)

    @property
    def inputs(self) -> list[str]:
        return self.interval + self.nominal


def summarize(client: CASClient, table: str) -> pd.DataFrame:
    """Univariate statistics (N, NMiss, Mean, Std, Min, Max, ...) for numeric columns."""
    result = client.invoke("simple.summary", table={"name": table})
    summary = client.table(result, "Summary", "simple.summary")
    logger.info(f"Summary statistics computed for {len(summary)} numeric columns of {table}")
    return summary


def missing_profile(client: CASClient, table: str) -> pd.DataFrame:
    """
    Missing-value counts per column.

    Returns:
        DataFrame with Column, NDistinct, NMiss and PctMiss, most-missing first.
    """
    result = client.invoke("simple.distinct", table={"name": table})
    distinct = client.table(result, "Distinct", "simple.distinct")
    n_rows = client.row_count(table)

    profile = distinct[["Column", "NDistinct", "NMiss"]].copy()
    profile["NMiss"] = profile["NMiss"].astype(int)
    profile["PctMiss"] = 100.0 * profile["NMiss"] / n_rows if n_rows else 0.0
    profile = profile.sort_values(["NMiss", "Column"], ascending=[False, True]).reset_index(drop=True)

    n_missing_cols = int((profile["NMiss"] > 0).sum())
    logger.info(f"{n_missing_cols}/{len(profile)} columns of {table} have missing values ({n_rows} rows)")
    return profile


def target_distribution(client: CASClient, table: str, target: str) -> pd.DataFrame:
    """Frequency of each target level, with percentages."""
    result = client.invoke("simple.freq", table={"name": table}, inputs=[target])
    freq = client.table(result, "Frequency", "simple.freq")
    freq = freq[["FmtVar", "Frequency"]].rename(columns={"FmtVar": "Level"})
    freq["Level"] = freq["Level"].astype(str).str.strip()
    freq["Percent"] = 100.0 * freq["Frequency"] / freq["Frequency"].sum()

    for _, row in freq.iterrows():
        logger.info(f"  {target}={row['Level']}: {int(row['Frequency'])} ({row['Percent']:.1f}%)")
    return freq.reset_index(drop=True)


def column_roles(column_info: pd.DataFrame, target: str, exclude: Iterable[str] = ()) -> ColumnRoles:
    """
    Split the columns of a table into interval and nominal inputs.

    Character columns are nominal, everything else is interval. The target
    and any excluded columns are not inputs. Column order is preserved.
    """
    if target not in set(column_info["Column"]):
        raise KeyError(f"Target column {target!r} not found in table columns")

    skip = {target, *exclude}
    roles = ColumnRoles()
    for _, row in column_info.iterrows():
        name = row["Column"]
        if name in skip:
            continue
        if str(row["Type"]).lower() in NOMINAL_TYPES:
            roles.nominal.append(name)
        else:
            roles.interval.append(name)

    logger.info(f"Inputs: {len(roles.interval)} interval, {len(roles.nominal)} nominal")
    return roles


def fetch_sample(client: CASClient, table: str, rows: int) -> pd.DataFrame:
    sample = client.fetch(table, rows)
    logger.info(f"Fetched {len(sample)} rows of {table} for plotting")
    return sample
