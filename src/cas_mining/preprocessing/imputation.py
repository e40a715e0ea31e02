import logging
from dataclasses import dataclass

import pandas as pd

from cas_mining.adapters.cas.client import CASClient
from cas_mining.preprocessing.exploration import ColumnRoles

logger = logging.getLogger(__name__)


@dataclass
class ImputationResult:
    table: str
    inputs: list[str]
    nominals: list[str]
    info: pd.DataFrame


def impute_missing(
    client: CASClient,
    table: str,
    roles: ColumnRoles,
    out_table: str,
    method_continuous: str = "MEDIAN",
    method_nominal: str = "MODE",
) -> ImputationResult:
    """
    Replace missing values server-side with dataPreprocess.impute.

    All original columns are copied to `out_table` next to the imputed
    IMP_* columns, so the target survives the step.

    Args:
        client: Connected CAS client.
        table: Input table name.
        roles: Interval and nominal inputs to impute.
        out_table: Name of the output table (replaced if it exists).
        method_continuous: Imputation method for interval inputs.
        method_nominal: Imputation method for nominal inputs.

    Returns:
        ImputationResult with the input names to model on after imputation.
    """
    logger.info(
        f"Imputing {len(roles.inputs)} inputs of {table} "
        f"(continuous={method_continuous}, nominal={method_nominal})"
    )
    result = client.invoke(
        "dataPreprocess.impute",
        table={"name": table},
        inputs=roles.inputs,
        methodContinuous=method_continuous,
        methodNominal=method_nominal,
        copyAllVars=True,
        casOut={"name": out_table, "replace": True},
    )
    info = client.table(result, "ImputeInfo", "dataPreprocess.impute")

    renamed = dict(zip(info["Variable"], info["ResultVar"]))
    inputs = [renamed.get(name, name) for name in roles.inputs]
    nominals = [renamed.get(name, name) for name in roles.nominal]

    for _, row in info.iterrows():
        logger.debug(f"  {row['Variable']} -> {row['ResultVar']} ({row.get('ImputeTech', '?')}, NMiss={row.get('NMiss', '?')})")
    logger.info(f"Imputed table written to {out_table}")

    return ImputationResult(table=out_table, inputs=inputs, nominals=nominals, info=info)
