import datetime as dt
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from pydantic import ValidationError

from .errors import StorageError
from .schemas import DetectionLogEntry, DetectionResult

logger = logging.getLogger("crop-disease-api.db")


def _now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class DetectionLogStore:
    """
    Append-only log of completed detections, one row per request.
    A connection is opened per call so the store can be shared across threads.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    @contextmanager
    def get_conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.get_conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS detection_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    image1_name TEXT NOT NULL,
                    image2_name TEXT NOT NULL,
                    result TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_detection_logs_created_at ON detection_logs(created_at)"
            )

    def append(self, image1_name: str, image2_name: str, result: DetectionResult) -> DetectionLogEntry:
        created_at = _now_iso()
        result_text = result.model_dump_json(by_alias=True)

        try:
            with self.get_conn() as conn:
                cur = conn.execute(
                    "INSERT INTO detection_logs (image1_name, image2_name, result, created_at) VALUES (?, ?, ?, ?)",
                    (image1_name, image2_name, result_text, created_at),
                )
                log_id = cur.lastrowid
        except sqlite3.Error as e:
            logger.exception("Error logging detection")
            raise StorageError("Failed to log detection") from e

        return DetectionLogEntry(
            id=log_id,
            image1_name=image1_name,
            image2_name=image2_name,
            result=result,
            created_at=created_at,
        )

    def recent(self, limit: int = 10) -> List[DetectionLogEntry]:
        try:
            with self.get_conn() as conn:
                rows = conn.execute(
                    "SELECT * FROM detection_logs ORDER BY created_at DESC, id DESC LIMIT ?",
                    (limit,),
                ).fetchall()

            return [
                DetectionLogEntry(
                    id=r["id"],
                    image1_name=r["image1_name"],
                    image2_name=r["image2_name"],
                    result=DetectionResult.model_validate_json(r["result"]),
                    created_at=r["created_at"],
                )
                for r in rows
            ]
        except (sqlite3.Error, ValidationError) as e:
            logger.exception("Error fetching detection history")
            raise StorageError("Failed to fetch history") from e
