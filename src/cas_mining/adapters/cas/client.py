import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import pandas as pd

from cas_mining.adapters.cas.errors import CASActionError, CASConnectionError
from cas_mining.settings import CASSettings, Settings, get_settings

logger = logging.getLogger(__name__)

# CAS severities: 0 = OK, 1 = warning, 2 = error
ERROR_SEVERITY = 2


class CASClient:
    def __init__(self,
                settings: Optional[Settings] = None,
                connection: Any = None):
        """
        Wraps a single swat.CAS session.

        A ready connection can be injected (notebooks, tests); otherwise it
        is opened lazily from CAS_* settings on first use.
        """
        self.settings: Settings = settings or get_settings()
        self.cas: CASSettings = self.settings.cas or CASSettings()
        self._conn = connection

    # ---- session lifecycle ----
    @property
    def connection(self) -> Any:
        return self.connect()

    def connect(self) -> Any:
        if self._conn is not None:
            return self._conn

        import swat

        # Engine messages are routed through logging instead of stdout
        swat.set_option("cas.print_messages", False)

        kwargs: dict[str, Any] = {"protocol": self.cas.protocol}
        if self.cas.authinfo is not None:
            kwargs["authinfo"] = str(self.cas.authinfo.expanduser())
        else:
            kwargs["username"] = self.cas.username
            if self.cas.password is not None:
                kwargs["password"] = self.cas.password.get_secret_value()

        logger.info(f"Connecting to CAS at {self.cas.protocol}://{self.cas.host}:{self.cas.port}")
        try:
            self._conn = swat.CAS(self.cas.host, self.cas.port, **kwargs)
        except swat.SWATError as e:
            raise CASConnectionError(
                f"could not connect to CAS at {self.cas.host}:{self.cas.port}: {e}"
            ) from e
        return self._conn

    def close(self, suppress_errors: bool = False) -> None:
        """
        End the CAS session. Idempotent.

        With `suppress_errors` a failing terminate is logged instead of raised,
        so teardown during error handling keeps the original exception.
        """
        if self._conn is None:
            return
        logger.info("Ending CAS session")
        try:
            self._conn.terminate()
        except Exception as e:
            if not suppress_errors:
                raise
            logger.warning(f"Failed to end CAS session cleanly: {e}", exc_info=True)
        finally:
            self._conn = None

    def __enter__(self) -> "CASClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close(suppress_errors=exc_type is not None)

    # ---- actions ----
    def invoke(self, action: str, **params) -> Mapping[str, Any]:
        """
        Run a CAS action and return its result tables.

        Args:
            action: Qualified action name, e.g. "simple.summary".
            **params: Action parameters, passed through unchanged.

        Returns:
            The CASResults mapping of result name -> table/value.

        Raises:
            CASActionError: If the action finished with error severity.
        """
        logger.debug(f"CAS action {action} params={params}")
        result = self.connection.retrieve(action, **params)

        for message in getattr(result, "messages", None) or []:
            logger.debug(f"[{action}] {message}")

        severity = getattr(result, "severity", 0) or 0
        if severity >= ERROR_SEVERITY:
            raise CASActionError(
                action,
                severity,
                reason=getattr(result, "reason", None),
                messages=getattr(result, "messages", None),
            )
        if severity:
            logger.warning(f"CAS action {action} completed with warnings")
        return result

    @staticmethod
    def table(result: Mapping[str, Any], key: str, action: str = "") -> pd.DataFrame:
        """Pull one named result table out of an action result."""
        if key not in result:
            raise KeyError(f"{action or 'CAS action'} returned no '{key}' table (got: {sorted(result)})")
        return pd.DataFrame(result[key])

    def load_actionsets(self, names: Iterable[str]) -> None:
        for name in names:
            logger.info(f"Loading action set {name}")
            self.invoke("builtins.loadActionSet", actionSet=name)

    # ---- tables ----
    def upload_csv(self, path: Path, table: str, replace: bool = True) -> str:
        """Upload a local CSV file as an in-memory CAS table."""
        logger.info(f"Uploading {path} to CAS table {table}")
        self.connection.upload_file(
            str(path),
            casout={"name": table, "replace": replace},
            importoptions={"filetype": "csv", "getnames": True},
        )
        return table

    def load_server_file(self, path: str, caslib: str, table: str, replace: bool = True) -> str:
        """Load a file that already lives in a server-side caslib."""
        logger.info(f"Loading {caslib}.{path} into CAS table {table}")
        self.invoke(
            "table.loadTable",
            path=path,
            caslib=caslib,
            casOut={"name": table, "replace": replace},
        )
        return table

    def column_info(self, table: str) -> pd.DataFrame:
        result = self.invoke("table.columnInfo", table={"name": table})
        return self.table(result, "ColumnInfo", "table.columnInfo")

    def row_count(self, table: str) -> int:
        result = self.invoke("table.tableInfo", name=table)
        info = self.table(result, "TableInfo", "table.tableInfo")
        return int(info["Rows"].iloc[0])

    def fetch(self, table: str, rows: int, where: Optional[str] = None) -> pd.DataFrame:
        """Bring at most `rows` rows of a CAS table to the client."""
        spec: dict[str, Any] = {"name": table}
        if where:
            spec["where"] = where
        result = self.invoke("table.fetch", table=spec, to=rows, maxRows=rows, index=False)
        return self.table(result, "Fetch", "table.fetch")

    def save_table(self,
                   table: str,
                   name: Optional[str] = None,
                   caslib: Optional[str] = None,
                   replace: bool = True) -> str:
        """Persist an in-memory table to a caslib as .sashdat."""
        caslib = caslib or self.settings.output_caslib
        file_name = f"{name or table}.sashdat"
        logger.info(f"Saving CAS table {table} to {caslib}/{file_name}")
        self.invoke(
            "table.save",
            table={"name": table},
            name=file_name,
            caslib=caslib,
            replace=replace,
        )
        return file_name

    def drop_table(self, table: str, quiet: bool = True) -> None:
        self.invoke("table.dropTable", name=table, quiet=quiet)
