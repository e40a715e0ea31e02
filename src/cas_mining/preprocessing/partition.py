import logging
from dataclasses import dataclass

from cas_mining.adapters.cas.client import CASClient
from cas_mining.features.table_schema import PARTITION_COLUMN, PARTITION_VALUES

logger = logging.getLogger(__name__)


@dataclass
class PartitionResult:
    table: str
    counts: dict[int, int]


def partition_filter(table: str, role: str, partition_column: str = PARTITION_COLUMN) -> dict:
    """Table reference restricted to one partition ('train' or 'validation')."""
    if role not in PARTITION_VALUES:
        raise ValueError(f"Unknown partition role {role!r}; expected one of {sorted(PARTITION_VALUES)}")
    return {"name": table, "where": f"{partition_column} = {PARTITION_VALUES[role]}"}


def partition_table(
    client: CASClient,
    table: str,
    out_table: str,
    validation_pct: float,
    seed: int,
    partition_column: str = PARTITION_COLUMN,
) -> PartitionResult:
    """
    Add a partition indicator with simple random sampling (sampling.srs).

    `validation_pct` percent of rows are flagged 1 (validation), the rest 0
    (training). Every column is copied to `out_table`.
    """
    if not 0 < validation_pct < 100:
        raise ValueError(f"validation_pct must be in (0, 100), got {validation_pct}")

    logger.info(f"Partitioning {table}: {validation_pct:g}% validation, seed={seed}")
    client.invoke(
        "sampling.srs",
        table={"name": table},
        samppct=validation_pct,
        seed=seed,
        partInd=True,
        output={"casOut": {"name": out_table, "replace": True}, "copyVars": "ALL"},
    )

    result = client.invoke("simple.freq", table={"name": out_table}, inputs=[partition_column])
    freq = client.table(result, "Frequency", "simple.freq")
    counts = {int(float(level)): int(n) for level, n in zip(freq["FmtVar"], freq["Frequency"])}

    logger.info(
        f"Partition sizes: train={counts.get(PARTITION_VALUES['train'], 0)}, "
        f"validation={counts.get(PARTITION_VALUES['validation'], 0)}"
    )
    return PartitionResult(table=out_table, counts=counts)
