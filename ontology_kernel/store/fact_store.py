"""
Fact Store — durable record of substances, their modes and transition records.

Consumed by:
- Condition Evaluator, read-only, through FactReader
- Transition Engine and Causal Graph, through FactStore

Behavioral Contract:
- Every write is a single atomic statement, or a group of statements inside
  `transaction()`.
- `transaction()` holds the store lock for its whole extent, so a
  read-check-write sequence inside it cannot interleave with other writers.
- Every sqlite3 error surfaces as StoreFailure with the original chained.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import ContextManager, Iterator, List, Optional, Protocol
from uuid import uuid4

from ontology_kernel.errors import NotFoundError, StoreFailure, ValidationError
from ontology_kernel.models.causality import CausalRelation
from ontology_kernel.models.ontology import Attribute, DataType, Kind, Mode, Substance
from ontology_kernel.models.transition import Actuality, Potentiality

logger = logging.getLogger(__name__)


class FactReader(Protocol):
    """Read-only view of recorded modes, as seen by the Condition Evaluator."""

    def find_mode(self, substance_id: str, attribute_name: str) -> Optional[Mode]:
        ...

    def mode_exists(self, substance_id: str, attribute_name: str, value: str) -> bool:
        ...


class FactStore(FactReader, Protocol):
    """Persistence interface the Transition Engine and Causal Graph are written against."""

    def transaction(self) -> ContextManager[None]:
        ...

    def get_substance(self, substance_id: str) -> Optional[Substance]:
        ...

    def create_potentiality(self, potentiality: Potentiality) -> Potentiality:
        ...

    def get_potentiality(self, potentiality_id: str) -> Optional[Potentiality]:
        ...

    def list_potentialities_for_substance(self, substance_id: str) -> List[Potentiality]:
        ...

    def create_actuality(self, actuality: Actuality) -> Actuality:
        ...

    def list_actualities_for_substance(self, substance_id: str) -> List[Actuality]:
        ...

    def list_actualities_for_potentiality(self, potentiality_id: str) -> List[Actuality]:
        ...

    def create_causal_relation(self, relation: CausalRelation) -> CausalRelation:
        ...

    def list_causal_relations_for_entity(self, entity_id: str) -> List[CausalRelation]:
        ...


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS kinds (
        id TEXT PRIMARY KEY,
        name TEXT UNIQUE NOT NULL,
        description TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS attributes (
        id TEXT PRIMARY KEY,
        name TEXT UNIQUE NOT NULL,
        description TEXT,
        data_type TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS substances (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        kind TEXT NOT NULL,
        essence TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS modes (
        id TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        substance_id TEXT NOT NULL,
        attribute_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (substance_id) REFERENCES substances(id) ON DELETE CASCADE,
        FOREIGN KEY (attribute_id) REFERENCES attributes(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS potentialities (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        conditions TEXT,
        substance_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (substance_id) REFERENCES substances(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS actualities (
        id TEXT PRIMARY KEY,
        description TEXT NOT NULL,
        actualized_at TEXT NOT NULL,
        substance_id TEXT NOT NULL,
        potentiality_id TEXT NOT NULL,
        FOREIGN KEY (substance_id) REFERENCES substances(id) ON DELETE CASCADE,
        FOREIGN KEY (potentiality_id) REFERENCES potentialities(id) ON DELETE CASCADE
    )
    """,
    # No foreign keys: endpoints may reference any entity type or external token.
    """
    CREATE TABLE IF NOT EXISTS causal_relations (
        id TEXT PRIMARY KEY,
        cause_type TEXT NOT NULL,
        from_entity TEXT NOT NULL,
        to_entity TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_substances_kind ON substances(kind)",
    "CREATE INDEX IF NOT EXISTS idx_modes_substance_id ON modes(substance_id)",
    "CREATE INDEX IF NOT EXISTS idx_modes_attribute_id ON modes(attribute_id)",
    "CREATE INDEX IF NOT EXISTS idx_potentialities_substance_id ON potentialities(substance_id)",
    "CREATE INDEX IF NOT EXISTS idx_actualities_substance_id ON actualities(substance_id)",
    "CREATE INDEX IF NOT EXISTS idx_actualities_potentiality_id ON actualities(potentiality_id)",
    "CREATE INDEX IF NOT EXISTS idx_causal_relations_from ON causal_relations(from_entity)",
    "CREATE INDEX IF NOT EXISTS idx_causal_relations_to ON causal_relations(to_entity)",
)

_TABLES = frozenset({
    "kinds", "attributes", "substances", "modes",
    "potentialities", "actualities", "causal_relations",
})

_MODE_SELECT = """
    SELECT modes.id, modes.value, modes.substance_id, modes.attribute_id,
           modes.created_at, attributes.name AS attribute_name
    FROM modes JOIN attributes ON modes.attribute_id = attributes.id
"""


def new_id(prefix: str) -> str:
    """Generate an opaque record identifier."""
    return f"{prefix}_{uuid4().hex[:12]}"


class SQLiteFactStore:
    """
    SQLite-backed fact store.
    Defaults to an in-memory database; pass a file path for durability.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._lock = threading.RLock()
        self._depth = 0
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._init_schema()
        except sqlite3.Error as exc:
            raise StoreFailure(f"failed to open fact store at {db_path}: {exc}") from exc
        logger.debug("Opened fact store at %s", db_path)

    def _init_schema(self) -> None:
        """Create all tables and indexes if they don't exist."""
        for statement in _SCHEMA:
            self._conn.execute(statement)
        self._conn.commit()

    # --- Transaction & low-level access ---

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Hold the store lock and commit on exit, or roll back on error.
        Nested transactions join the outermost one.
        """
        with self._lock:
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if self._depth == 0:
                    self._conn.rollback()
                raise
            self._depth -= 1
            if self._depth == 0:
                try:
                    self._conn.commit()
                except sqlite3.Error as exc:
                    self._conn.rollback()
                    raise StoreFailure(f"commit failed: {exc}") from exc

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreFailure(f"store operation failed: {exc}") from exc

    def _fetch_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self._execute(sql, params).fetchone()

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self._execute(sql, params).fetchall()

    # --- Kinds ---

    def create_kind(self, name: str, description: str = "") -> Kind:
        kind = Kind(
            id=new_id("kind"),
            name=name,
            description=description,
            created_at=datetime.utcnow(),
        )
        with self.transaction():
            if self._execute("SELECT 1 FROM kinds WHERE name = ?", (name,)).fetchone():
                raise ValidationError(f"kind already exists: {name}")
            self._execute(
                "INSERT INTO kinds (id, name, description, created_at) VALUES (?, ?, ?, ?)",
                (kind.id, kind.name, kind.description, kind.created_at.isoformat()),
            )
        return kind

    def get_kind(self, kind_id: str) -> Optional[Kind]:
        row = self._fetch_one("SELECT * FROM kinds WHERE id = ?", (kind_id,))
        return Kind(**dict(row)) if row else None

    def list_kinds(self) -> List[Kind]:
        return [Kind(**dict(r)) for r in self._fetch_all("SELECT * FROM kinds ORDER BY rowid")]

    # --- Attributes ---

    def create_attribute(
        self, name: str, data_type: DataType, description: str = ""
    ) -> Attribute:
        attribute = Attribute(
            id=new_id("attr"),
            name=name,
            description=description,
            data_type=data_type,
            created_at=datetime.utcnow(),
        )
        with self.transaction():
            if self._execute("SELECT 1 FROM attributes WHERE name = ?", (name,)).fetchone():
                raise ValidationError(f"attribute already exists: {name}")
            self._execute(
                "INSERT INTO attributes (id, name, description, data_type, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    attribute.id,
                    attribute.name,
                    attribute.description,
                    attribute.data_type.value,
                    attribute.created_at.isoformat(),
                ),
            )
        return attribute

    def get_attribute(self, attribute_id: str) -> Optional[Attribute]:
        row = self._fetch_one("SELECT * FROM attributes WHERE id = ?", (attribute_id,))
        return Attribute(**dict(row)) if row else None

    def get_attribute_by_name(self, name: str) -> Optional[Attribute]:
        row = self._fetch_one("SELECT * FROM attributes WHERE name = ?", (name,))
        return Attribute(**dict(row)) if row else None

    def list_attributes(self) -> List[Attribute]:
        rows = self._fetch_all("SELECT * FROM attributes ORDER BY rowid")
        return [Attribute(**dict(r)) for r in rows]

    # --- Substances ---

    def create_substance(self, name: str, kind: str, essence: str) -> Substance:
        substance = Substance(
            id=new_id("sub"),
            name=name,
            kind=kind,
            essence=essence,
            created_at=datetime.utcnow(),
        )
        with self.transaction():
            self._execute(
                "INSERT INTO substances (id, name, kind, essence, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    substance.id,
                    substance.name,
                    substance.kind,
                    substance.essence,
                    substance.created_at.isoformat(),
                ),
            )
        return substance

    def get_substance(self, substance_id: str) -> Optional[Substance]:
        row = self._fetch_one("SELECT * FROM substances WHERE id = ?", (substance_id,))
        return Substance(**dict(row)) if row else None

    def list_substances(self) -> List[Substance]:
        rows = self._fetch_all("SELECT * FROM substances ORDER BY rowid")
        return [Substance(**dict(r)) for r in rows]

    def update_substance(
        self,
        substance_id: str,
        name: Optional[str] = None,
        kind: Optional[str] = None,
        essence: Optional[str] = None,
    ) -> Substance:
        """Update descriptive fields. The identifier never changes."""
        updates = {
            field: value
            for field, value in (("name", name), ("kind", kind), ("essence", essence))
            if value is not None
        }
        with self.transaction():
            existing = self.get_substance(substance_id)
            if existing is None:
                raise NotFoundError("substance", substance_id)
            if updates:
                assignments = ", ".join(f"{field} = ?" for field in updates)
                self._execute(
                    f"UPDATE substances SET {assignments} WHERE id = ?",
                    (*updates.values(), substance_id),
                )
        return existing.model_copy(update=updates)

    def delete_substance(self, substance_id: str) -> bool:
        """Delete a substance and, by cascade, its modes and transition records."""
        with self.transaction():
            cursor = self._execute("DELETE FROM substances WHERE id = ?", (substance_id,))
        return cursor.rowcount > 0

    # --- Modes ---

    def create_mode(self, substance_id: str, attribute_id: str, value: str) -> Mode:
        """Record that a substance has an attribute at a value. Both must exist."""
        with self.transaction():
            if self.get_substance(substance_id) is None:
                raise NotFoundError("substance", substance_id)
            attribute = self.get_attribute(attribute_id)
            if attribute is None:
                raise NotFoundError("attribute", attribute_id)
            mode = Mode(
                id=new_id("mode"),
                value=value,
                substance_id=substance_id,
                attribute_id=attribute_id,
                attribute_name=attribute.name,
                created_at=datetime.utcnow(),
            )
            self._execute(
                "INSERT INTO modes (id, value, substance_id, attribute_id, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (mode.id, mode.value, substance_id, attribute_id, mode.created_at.isoformat()),
            )
        return mode

    def list_modes(self) -> List[Mode]:
        rows = self._fetch_all(_MODE_SELECT + " ORDER BY modes.rowid")
        return [Mode(**dict(r)) for r in rows]

    def list_modes_for_substance(self, substance_id: str) -> List[Mode]:
        rows = self._fetch_all(
            _MODE_SELECT + " WHERE modes.substance_id = ? ORDER BY modes.rowid",
            (substance_id,),
        )
        return [Mode(**dict(r)) for r in rows]

    def find_mode(self, substance_id: str, attribute_name: str) -> Optional[Mode]:
        """The most recently recorded mode of a substance for the named attribute."""
        row = self._fetch_one(
            _MODE_SELECT
            + " WHERE modes.substance_id = ? AND attributes.name = ?"
            " ORDER BY modes.rowid DESC LIMIT 1",
            (substance_id, attribute_name),
        )
        return Mode(**dict(row)) if row else None

    def mode_exists(self, substance_id: str, attribute_name: str, value: str) -> bool:
        """Whether any recorded mode matches the attribute name and value exactly."""
        row = self._fetch_one(
            "SELECT COUNT(*) AS cnt FROM modes "
            "JOIN attributes ON modes.attribute_id = attributes.id "
            "WHERE modes.substance_id = ? AND attributes.name = ? AND modes.value = ?",
            (substance_id, attribute_name, value),
        )
        return row["cnt"] > 0

    # --- Potentialities ---

    def create_potentiality(self, potentiality: Potentiality) -> Potentiality:
        with self.transaction():
            self._execute(
                "INSERT INTO potentialities "
                "(id, name, description, conditions, substance_id, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    potentiality.id,
                    potentiality.name,
                    potentiality.description,
                    potentiality.conditions,
                    potentiality.substance_id,
                    potentiality.created_at.isoformat(),
                ),
            )
        return potentiality

    def get_potentiality(self, potentiality_id: str) -> Optional[Potentiality]:
        row = self._fetch_one("SELECT * FROM potentialities WHERE id = ?", (potentiality_id,))
        return self._to_potentiality(row) if row else None

    def list_potentialities(self) -> List[Potentiality]:
        rows = self._fetch_all("SELECT * FROM potentialities ORDER BY rowid")
        return [self._to_potentiality(r) for r in rows]

    def list_potentialities_for_substance(self, substance_id: str) -> List[Potentiality]:
        rows = self._fetch_all(
            "SELECT * FROM potentialities WHERE substance_id = ? ORDER BY rowid",
            (substance_id,),
        )
        return [self._to_potentiality(r) for r in rows]

    @staticmethod
    def _to_potentiality(row: sqlite3.Row) -> Potentiality:
        data = dict(row)
        data["description"] = data["description"] or ""
        data["conditions"] = data["conditions"] or ""
        return Potentiality(**data)

    # --- Actualities ---

    def create_actuality(self, actuality: Actuality) -> Actuality:
        with self.transaction():
            self._execute(
                "INSERT INTO actualities "
                "(id, description, actualized_at, substance_id, potentiality_id) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    actuality.id,
                    actuality.description,
                    actuality.actualized_at.isoformat(),
                    actuality.substance_id,
                    actuality.potentiality_id,
                ),
            )
        return actuality

    def list_actualities_for_substance(self, substance_id: str) -> List[Actuality]:
        rows = self._fetch_all(
            "SELECT * FROM actualities WHERE substance_id = ? ORDER BY rowid",
            (substance_id,),
        )
        return [Actuality(**dict(r)) for r in rows]

    def list_actualities_for_potentiality(self, potentiality_id: str) -> List[Actuality]:
        rows = self._fetch_all(
            "SELECT * FROM actualities WHERE potentiality_id = ? ORDER BY rowid",
            (potentiality_id,),
        )
        return [Actuality(**dict(r)) for r in rows]

    # --- Causal relations ---

    def create_causal_relation(self, relation: CausalRelation) -> CausalRelation:
        with self.transaction():
            self._execute(
                "INSERT INTO causal_relations "
                "(id, cause_type, from_entity, to_entity, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    relation.id,
                    relation.cause_type.value,
                    relation.from_entity,
                    relation.to_entity,
                    relation.created_at.isoformat(),
                ),
            )
        return relation

    def list_causal_relations_for_entity(self, entity_id: str) -> List[CausalRelation]:
        """All relations touching the entity at either endpoint, oldest first."""
        rows = self._fetch_all(
            "SELECT * FROM causal_relations "
            "WHERE from_entity = ? OR to_entity = ? ORDER BY rowid",
            (entity_id, entity_id),
        )
        return [CausalRelation(**dict(r)) for r in rows]

    # --- Housekeeping ---

    def count(self, table: str) -> int:
        """Number of rows in one of the store's tables."""
        if table not in _TABLES:
            raise ValueError(f"unknown table: {table}")
        row = self._fetch_one(f"SELECT COUNT(*) AS cnt FROM {table}")
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
