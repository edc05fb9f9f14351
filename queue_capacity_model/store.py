"""
SQLite persistence for named scenarios.

A scenario stores an (input, output) pair verbatim together with a name
and creation timestamp. The connection is owned by the caller and passed
in; use open_store() for a scoped connection that is always closed.

Usage:
    with open_store("data/simulations.db") as store:
        record = store.create("peak traffic", inp, run_simulation(inp))
        for r in store.list():
            print(r.id, r.name)
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional
import json
import logging
import sqlite3

from .model import SimulationInput, SimulationOutput
from .validation import InputValidationError, validate_scenario_name


logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data") / "simulations.db"
DEFAULT_LIST_LIMIT = 100

_SCHEMA = """
CREATE TABLE IF NOT EXISTS scenarios (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    input_json TEXT NOT NULL,
    output_json TEXT NOT NULL
)
"""

_COLUMNS = "id, name, created_at, input_json, output_json"


@dataclass(frozen=True)
class ScenarioRecord:
    """A persisted scenario."""
    id: int
    name: str
    created_at: str
    input: SimulationInput
    output: SimulationOutput

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "input": self.input.to_dict(),
            "output": self.output.to_dict(),
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ScenarioRecord":
        return cls(
            id=row["id"],
            name=row["name"],
            created_at=row["created_at"],
            input=SimulationInput.from_dict(json.loads(row["input_json"])),
            output=SimulationOutput.from_dict(json.loads(row["output_json"])),
        )


class ScenarioStore:
    """
    CRUD access to the scenarios table over an injected connection.

    The store never opens or closes the connection itself.
    """

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection
        self.connection.row_factory = sqlite3.Row
        with self.connection:
            self.connection.execute(_SCHEMA)

    def create(
        self,
        name: str,
        inp: SimulationInput,
        output: SimulationOutput,
    ) -> ScenarioRecord:
        """
        Persist a named scenario and return the stored record.

        Raises:
            InputValidationError: If the name is not 2-120 characters after trimming
        """
        errors = validate_scenario_name(name)
        if errors:
            raise InputValidationError(errors, "Invalid scenario payload")

        created_at = datetime.now(timezone.utc).isoformat()
        with self.connection:
            cursor = self.connection.execute(
                "INSERT INTO scenarios (name, created_at, input_json, output_json) "
                "VALUES (?, ?, ?, ?)",
                (
                    name.strip(),
                    created_at,
                    json.dumps(inp.to_dict()),
                    json.dumps(output.to_dict()),
                ),
            )
        scenario_id = cursor.lastrowid
        logger.debug("Saved scenario %d (%r)", scenario_id, name)

        record = self.get(scenario_id)
        if record is None:
            raise RuntimeError("Failed to fetch saved scenario")
        return record

    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[ScenarioRecord]:
        """Most recently created scenarios first."""
        rows = self.connection.execute(
            f"SELECT {_COLUMNS} FROM scenarios ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [ScenarioRecord.from_row(row) for row in rows]

    def get(self, scenario_id: int) -> Optional[ScenarioRecord]:
        row = self.connection.execute(
            f"SELECT {_COLUMNS} FROM scenarios WHERE id = ?",
            (scenario_id,),
        ).fetchone()
        return ScenarioRecord.from_row(row) if row is not None else None

    def delete(self, scenario_id: int) -> bool:
        """Delete a scenario. Returns False if no scenario had that id."""
        with self.connection:
            cursor = self.connection.execute(
                "DELETE FROM scenarios WHERE id = ?", (scenario_id,)
            )
        deleted = cursor.rowcount > 0
        if not deleted:
            logger.debug("No scenario with id %d to delete", scenario_id)
        return deleted


@contextmanager
def open_store(path: str | Path = DEFAULT_DB_PATH) -> Iterator[ScenarioStore]:
    """Open a scenario database, yield a store, and always close the connection."""
    path = Path(path)
    if str(path) != ":memory:":
        path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(str(path))
    try:
        yield ScenarioStore(connection)
    finally:
        connection.close()
