from pathlib import Path
from typing import Literal, Optional, List

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class CASSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CAS_", extra="ignore")
    host: str = "localhost"
    port: int = 5570
    protocol: Literal["cas", "http", "https"] = "cas"
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    authinfo: Optional[Path] = None  # ~/.authinfo style credentials file

class Settings(BaseSettings):

    # ---- Data roots (handy for pipelines/scripts) ----
    project_root: Path = Path(".").resolve()
    data_root: Path = Path("data")
    raw_dir: Path = data_root / "raw"
    reports_dir: Path = Path("reports")
    figures_dir: Path = reports_dir / "figures"

    # ----- Datasets -----
    dataset_csv: Path = raw_dir / "hmeq.csv"
    table_name: str = "hmeq"
    source_caslib: Optional[str] = None  # load from the server instead of uploading
    output_caslib: str = "casuser"

    # ---- modeling ----
    target: str = "BAD"
    event: str = "1"
    validation_pct: float = 30.0
    cutoff: float = 0.5
    impute_continuous: Literal["MEAN", "MEDIAN", "MIDRANGE", "RANDOM", "VALUE"] = "MEDIAN"
    impute_nominal: Literal["MODE", "VALUE"] = "MODE"
    exploration_rows: int = 5000
    model_families: List[str] = [
        "decision_tree", "random_forest", "gradient_boosting", "neural_network"
    ]

    # ---- app/runtime ----
    env: Literal["dev", "staging", "prod"] = "dev"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ---- reproducibility ----
    random_seed: int = 12345

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_prefix="APP_",      # APP_TARGET, APP_LOG_LEVEL, etc.
        env_nested_delimiter='__',
        extra = "ignore"
    )

    # ---- integrations ----
    cas: Optional[CASSettings] = None  # falls back to CAS_* env vars in the client


def get_settings() -> Settings:
    """Build settings from the environment and .env file."""
    return Settings()
