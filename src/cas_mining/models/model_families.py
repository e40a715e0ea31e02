"""
Registry of the classifier families trained on the CAS server.

Each family maps to a train and a score action plus the default
hyperparameters sent with the train action.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from cas_mining.features.table_schema import BASE_ACTIONSETS


@dataclass(frozen=True)
class ModelFamily:
    name: str
    label: str
    prefix: str
    actionset: str
    train_action: str
    score_action: str
    default_params: dict[str, Any] = field(default_factory=dict)
    seeded: bool = True


DECISION_TREE = ModelFamily(
    name="decision_tree",
    label="Decision Tree",
    prefix="DT",
    actionset="decisionTree",
    train_action="decisionTree.dtreeTrain",
    score_action="decisionTree.dtreeScore",
    default_params={"maxLevel": 10, "nBins": 50, "crit": "GAINRATIO", "prune": True},
    seeded=False,
)

RANDOM_FOREST = ModelFamily(
    name="random_forest",
    label="Random Forest",
    prefix="RF",
    actionset="decisionTree",
    train_action="decisionTree.forestTrain",
    score_action="decisionTree.forestScore",
    default_params={"nTree": 100, "maxLevel": 20, "leafSize": 5, "nBins": 50, "bootstrap": 0.6},
)

GRADIENT_BOOSTING = ModelFamily(
    name="gradient_boosting",
    label="Gradient Boosting",
    prefix="GBT",
    actionset="decisionTree",
    train_action="decisionTree.gbtreeTrain",
    score_action="decisionTree.gbtreeScore",
    default_params={"nTree": 100, "learningRate": 0.1, "maxLevel": 5, "leafSize": 5, "subSampleRate": 0.8},
)

NEURAL_NETWORK = ModelFamily(
    name="neural_network",
    label="Neural Network",
    prefix="NN",
    actionset="neuralNet",
    train_action="neuralNet.annTrain",
    score_action="neuralNet.annScore",
    default_params={
        "arch": "MLP",
        "hiddens": [10],
        "acts": ["TANH"],
        "std": "MIDRANGE",
        "errorFunc": "ENTROPY",
        "targetAct": "SOFTMAX",
        "nloOpts": {"algorithm": "LBFGS", "maxIters": 250},
    },
)

MODEL_FAMILIES: dict[str, ModelFamily] = {
    family.name: family
    for family in (DECISION_TREE, RANDOM_FOREST, GRADIENT_BOOSTING, NEURAL_NETWORK)
}


def get_family(name: str) -> ModelFamily:
    try:
        return MODEL_FAMILIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown model family {name!r}; expected one of {list(MODEL_FAMILIES)}"
        ) from None


def resolve_families(names: Iterable[str]) -> list[ModelFamily]:
    """Look up families by name, keeping the given order and dropping repeats."""
    families: list[ModelFamily] = []
    for name in names:
        family = get_family(name)
        if family not in families:
            families.append(family)
    if not families:
        raise ValueError("At least one model family is required")
    return families


def required_actionsets(families: Iterable[ModelFamily]) -> list[str]:
    actionsets = list(BASE_ACTIONSETS)
    for family in families:
        if family.actionset not in actionsets:
            actionsets.append(family.actionset)
    return actionsets
