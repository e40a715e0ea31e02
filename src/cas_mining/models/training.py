"""
Train and score classifier families on the CAS server.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd

from cas_mining.adapters.cas.client import CASClient
from cas_mining.features.table_schema import PARTITION_COLUMN, model_table_name, scored_table_name
from cas_mining.models.model_families import ModelFamily
from cas_mining.preprocessing.partition import partition_filter

logger = logging.getLogger(__name__)


@dataclass
class TrainedModel:
    family: ModelFamily
    model_table: str
    model_info: Optional[pd.DataFrame] = None


@dataclass
class ScoredModel:
    family: ModelFamily
    table: str
    score_info: Optional[pd.DataFrame] = None


def _info_table(result, key: str) -> Optional[pd.DataFrame]:
    return pd.DataFrame(result[key]) if key in result else None


def train_model(
    client: CASClient,
    family: ModelFamily,
    table: str,
    target: str,
    inputs: Sequence[str],
    nominals: Sequence[str],
    seed: Optional[int] = None,
    partition_column: str = PARTITION_COLUMN,
    **overrides,
) -> TrainedModel:
    """
    Train one model family on the training partition.

    Args:
        client: Connected CAS client.
        family: Model family to train.
        table: Partitioned input table.
        target: Binary target column.
        inputs: Input columns (target excluded).
        nominals: Nominal inputs; the target is always added.
        seed: Seed for families with random components.
        partition_column: Partition indicator column.
        **overrides: Hyperparameters replacing the family defaults.

    Returns:
        TrainedModel pointing at the server-side model table.
    """
    model_table = model_table_name(family.prefix)
    params = {**family.default_params, **overrides}
    if family.seeded and seed is not None:
        params.setdefault("seed", seed)

    nominal_vars = [target] + [name for name in nominals if name != target]

    logger.info(f"Training {family.label} ({family.train_action}) -> {model_table}")
    result = client.invoke(
        family.train_action,
        table=partition_filter(table, "train", partition_column),
        target=target,
        inputs=list(inputs),
        nominals=nominal_vars,
        casOut={"name": model_table, "replace": True},
        **params,
    )
    return TrainedModel(family=family, model_table=model_table, model_info=_info_table(result, "ModelInfo"))


def score_model(
    client: CASClient,
    trained: TrainedModel,
    table: str,
    target: str,
    partition_column: str = PARTITION_COLUMN,
) -> ScoredModel:
    """Score every row of `table`, keeping the target and partition indicator."""
    family = trained.family
    scored_table = scored_table_name(family.prefix)

    logger.info(f"Scoring {family.label} ({family.score_action}) -> {scored_table}")
    result = client.invoke(
        family.score_action,
        table={"name": table},
        modelTable={"name": trained.model_table},
        casOut={"name": scored_table, "replace": True},
        copyVars=[target, partition_column],
        encodeName=True,
    )

    score_info = _info_table(result, "ScoreInfo")
    if score_info is not None:
        for _, row in score_info.iterrows():
            logger.debug(f"  {family.prefix} {row.get('Descr', '')}: {row.get('Value', '')}")
    return ScoredModel(family=family, table=scored_table, score_info=score_info)
