# Data contracts shared by the workflow steps

# Partition indicator written by sampling.srs (1 = sampled)
PARTITION_COLUMN: str = "_PartInd_"

# Partition roles -> indicator value; the sampled share is held out for validation
PARTITION_VALUES: dict[str, int] = {
    "train": 0,
    "validation": 1,
}

# CAS column types treated as nominal inputs
NOMINAL_TYPES: frozenset[str] = frozenset({"char", "varchar"})

# Action sets every run needs besides the model families' own
BASE_ACTIONSETS: tuple[str, ...] = (
    "table",
    "simple",
    "dataPreprocess",
    "sampling",
    "percentile",
)


def model_table_name(prefix: str) -> str:
    return f"{prefix}_model"


def scored_table_name(prefix: str) -> str:
    return f"_scored_{prefix}"


def probability_column(target: str, level: str) -> str:
    """Name of the posterior probability column for one target level, e.g. P_BAD1."""
    return f"P_{target}{level}"


def complementary_level(event: str) -> str:
    """The non-event level of a binary 0/1 target."""
    if event not in ("0", "1"):
        raise ValueError(f"event level must be '0' or '1', got {event!r}")
    return "0" if event == "1" else "1"
