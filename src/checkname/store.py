"""
Project history store

Remembers every name generated for a project tag, every probe result and
every score, so a later `find --project <tag>` never re-suggests a name and
`leaderboard` can rank everything seen so far.

NullStore is the no-op default; DuckDBStore persists to a local DuckDB file.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, Union

import duckdb

from .config import config
from .errors import StoreError
from .models import Candidate, NameScore, ProbeCategory, ProbeResult, ResultKind

logger = logging.getLogger(__name__)


class ProjectStore(ABC):
    """Persistence for find sessions, keyed by project tag."""

    @abstractmethod
    def get_or_create_project(self, tag: str, description: Optional[str] = None) -> int:
        pass

    @abstractmethod
    def prior_names(self, project_id: int) -> list[str]:
        pass

    @abstractmethod
    def record_name(self, project_id: int, candidate: Candidate) -> Optional[int]:
        pass

    @abstractmethod
    def record_check(self, project_id: int, name: str, result: ProbeResult) -> None:
        pass

    @abstractmethod
    def record_score(self, project_id: int, score: NameScore, model: str) -> None:
        pass

    def leaderboard(
        self,
        tag: str,
        min_score: float = 0.0,
        verdicts: Optional[Sequence[str]] = None,
        limit: int = 20,
    ) -> list[dict]:
        return []

    def list_projects(self) -> list[dict]:
        return []

    def delete_project(self, tag: str) -> bool:
        return False

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class NullStore(ProjectStore):
    """Remembers nothing."""

    def get_or_create_project(self, tag: str, description: Optional[str] = None) -> int:
        return 0

    def prior_names(self, project_id: int) -> list[str]:
        return []

    def record_name(self, project_id: int, candidate: Candidate) -> Optional[int]:
        return None

    def record_check(self, project_id: int, name: str, result: ProbeResult) -> None:
        pass

    def record_score(self, project_id: int, score: NameScore, model: str) -> None:
        pass


SCHEMA = """
CREATE SEQUENCE IF NOT EXISTS project_ids START 1;
CREATE SEQUENCE IF NOT EXISTS name_ids START 1;
CREATE SEQUENCE IF NOT EXISTS check_ids START 1;
CREATE SEQUENCE IF NOT EXISTS score_ids START 1;

CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY DEFAULT nextval('project_ids'),
    tag VARCHAR UNIQUE NOT NULL,
    description VARCHAR,
    created_at TIMESTAMP DEFAULT current_timestamp,
    updated_at TIMESTAMP DEFAULT current_timestamp
);

CREATE TABLE IF NOT EXISTS names (
    id INTEGER PRIMARY KEY DEFAULT nextval('name_ids'),
    project_id INTEGER NOT NULL,
    name VARCHAR NOT NULL,
    rationale VARCHAR,
    source VARCHAR,
    created_at TIMESTAMP DEFAULT current_timestamp,
    UNIQUE (project_id, name)
);

CREATE TABLE IF NOT EXISTS availability_checks (
    id INTEGER PRIMARY KEY DEFAULT nextval('check_ids'),
    name_id INTEGER NOT NULL,
    probe VARCHAR NOT NULL,
    category VARCHAR NOT NULL,
    kind VARCHAR NOT NULL,
    available BOOLEAN,
    url VARCHAR,
    error VARCHAR,
    checked_at TIMESTAMP DEFAULT current_timestamp
);

CREATE TABLE IF NOT EXISTS scores (
    id INTEGER PRIMARY KEY DEFAULT nextval('score_ids'),
    name_id INTEGER NOT NULL,
    model VARCHAR NOT NULL,
    typability INTEGER,
    memorability INTEGER,
    meaning INTEGER,
    uniqueness INTEGER,
    cultural_risk INTEGER,
    overall DOUBLE,
    verdict VARCHAR,
    weaknesses VARCHAR,
    judged_at TIMESTAMP DEFAULT current_timestamp
);
"""

# Only binary probes count toward the stored availability percentage
_ADVISORY_CATEGORIES = (ProbeCategory.UNIQUENESS.value, ProbeCategory.TRADEMARK.value)


class DuckDBStore(ProjectStore):
    """
    DuckDB-backed store.

    Pass ":memory:" for a throwaway database.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = str(db_path or config.store.db_path)
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.con = duckdb.connect(self.db_path)
            for statement in SCHEMA.split(";"):
                if statement.strip():
                    self.con.execute(statement)
        except (duckdb.Error, OSError) as e:
            raise StoreError(f"Could not open database {self.db_path}: {e}") from e
        logger.debug(f"Opened project store at {self.db_path}")

    def _execute(self, sql: str, params: Optional[list] = None):
        try:
            return self.con.execute(sql, params or [])
        except duckdb.Error as e:
            raise StoreError(f"Database error: {e}") from e

    def _project_id(self, tag: str) -> Optional[int]:
        row = self._execute("SELECT id FROM projects WHERE tag = ?", [tag]).fetchone()
        return row[0] if row else None

    def _name_id(self, project_id: int, name: str) -> Optional[int]:
        row = self._execute(
            "SELECT id FROM names WHERE project_id = ? AND name = ?",
            [project_id, name.lower()],
        ).fetchone()
        return row[0] if row else None

    def get_or_create_project(self, tag: str, description: Optional[str] = None) -> int:
        project_id = self._project_id(tag)
        if project_id is not None:
            if description:
                self._execute(
                    "UPDATE projects SET description = ?, updated_at = current_timestamp WHERE id = ?",
                    [description, project_id],
                )
            return project_id

        row = self._execute(
            "INSERT INTO projects (tag, description) VALUES (?, ?) RETURNING id",
            [tag, description],
        ).fetchone()
        logger.info(f"Created project {tag!r}")
        return row[0]

    def prior_names(self, project_id: int) -> list[str]:
        rows = self._execute(
            "SELECT name FROM names WHERE project_id = ? ORDER BY id",
            [project_id],
        ).fetchall()
        return [r[0] for r in rows]

    def record_name(self, project_id: int, candidate: Candidate) -> Optional[int]:
        """Insert a name; returns None if the project already has it."""
        if self._name_id(project_id, candidate.name) is not None:
            return None
        row = self._execute(
            "INSERT INTO names (project_id, name, rationale, source) VALUES (?, ?, ?, ?) RETURNING id",
            [project_id, candidate.name.lower(), candidate.rationale or None, candidate.source],
        ).fetchone()
        return row[0]

    def record_check(self, project_id: int, name: str, result: ProbeResult) -> None:
        """Store the latest result of one probe for one name."""
        name_id = self._name_id(project_id, name)
        if name_id is None:
            return
        self._execute(
            "DELETE FROM availability_checks WHERE name_id = ? AND probe = ?",
            [name_id, result.probe],
        )
        self._execute(
            """INSERT INTO availability_checks (name_id, probe, category, kind, available, url, error)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            [
                name_id,
                result.probe,
                result.category.value,
                result.kind.value,
                result.kind == ResultKind.DETERMINED and result.available,
                result.url,
                result.error,
            ],
        )

    def record_score(self, project_id: int, score: NameScore, model: str) -> None:
        name_id = self._name_id(project_id, score.name)
        if name_id is None:
            return
        self._execute(
            """INSERT INTO scores (name_id, model, typability, memorability, meaning, uniqueness,
                                   cultural_risk, overall, verdict, weaknesses)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            [
                name_id, model, score.typability, score.memorability, score.meaning,
                score.uniqueness, score.cultural_risk, score.overall, score.verdict.value,
                score.weaknesses or None,
            ],
        )

    def leaderboard(
        self,
        tag: str,
        min_score: float = 0.0,
        verdicts: Optional[Sequence[str]] = None,
        limit: int = 20,
    ) -> list[dict]:
        """
        Best-scored names of a project, latest score per name.

        Returns:
            Dicts with name, rationale, source, sub-scores, overall, verdict,
            weaknesses and availability_percent
        """
        project_id = self._project_id(tag)
        if project_id is None:
            return []

        verdicts = list(verdicts or ["strong", "consider", "reject"])
        placeholders = ", ".join("?" for _ in verdicts)
        advisory = ", ".join("?" for _ in _ADVISORY_CATEGORIES)

        cursor = self._execute(
            f"""
            WITH latest AS (
                SELECT s.* FROM scores s
                WHERE s.id = (SELECT MAX(id) FROM scores WHERE name_id = s.name_id)
            ),
            avail AS (
                SELECT name_id,
                       100.0 * SUM(CASE WHEN available THEN 1 ELSE 0 END) / COUNT(*) AS availability_percent
                FROM availability_checks
                WHERE category NOT IN ({advisory})
                GROUP BY name_id
            )
            SELECT n.name, n.rationale, n.source,
                   l.typability, l.memorability, l.meaning, l.uniqueness, l.cultural_risk,
                   l.overall, l.verdict, l.weaknesses,
                   COALESCE(a.availability_percent, 0) AS availability_percent
            FROM names n
            JOIN latest l ON l.name_id = n.id
            LEFT JOIN avail a ON a.name_id = n.id
            WHERE n.project_id = ?
              AND l.overall >= ?
              AND l.verdict IN ({placeholders})
            ORDER BY l.overall DESC, n.name
            LIMIT ?
            """,
            [*_ADVISORY_CATEGORIES, project_id, min_score, *verdicts, limit],
        )
        columns = [d[0] for d in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def list_projects(self) -> list[dict]:
        cursor = self._execute(
            """
            SELECT p.tag, p.description,
                   COUNT(DISTINCT n.id) AS name_count,
                   COUNT(DISTINCT CASE WHEN s.verdict = 'strong' THEN n.id END) AS strong_count
            FROM projects p
            LEFT JOIN names n ON n.project_id = p.id
            LEFT JOIN scores s ON s.name_id = n.id
            GROUP BY p.id, p.tag, p.description, p.updated_at
            ORDER BY p.updated_at DESC
            """
        )
        columns = [d[0] for d in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def delete_project(self, tag: str) -> bool:
        """Delete a project and everything recorded under it."""
        project_id = self._project_id(tag)
        if project_id is None:
            return False

        name_ids = "SELECT id FROM names WHERE project_id = ?"
        self._execute(f"DELETE FROM scores WHERE name_id IN ({name_ids})", [project_id])
        self._execute(f"DELETE FROM availability_checks WHERE name_id IN ({name_ids})", [project_id])
        self._execute("DELETE FROM names WHERE project_id = ?", [project_id])
        self._execute("DELETE FROM projects WHERE id = ?", [project_id])
        logger.info(f"Deleted project {tag!r}")
        return True

    def close(self) -> None:
        self.con.close()
