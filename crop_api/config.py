import os
from dataclasses import dataclass, field, fields
from pathlib import Path

DATA_DIR = Path("data")

ENV_PREFIX = "CROP_API_"


@dataclass
class Settings:
    data_dir: Path = DATA_DIR
    db_path: Path = DATA_DIR / "disease_detection.db"
    uploads_dir: Path = DATA_DIR / "uploads"

    max_upload_bytes: int = 10 * 1024 * 1024
    min_valid_bytes: int = 50 * 1024
    max_valid_bytes: int = 10 * 1024 * 1024
    invalid_chance: float = 0.15

    # Simulated processing latency before responding
    valid_delay_ms: int = 15000
    invalid_delay_ms: int = 7000

    history_limit: int = 10
    cors_origins: list = field(default_factory=lambda: ["*"])

    host: str = "0.0.0.0"
    port: int = 3001

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from defaults, overridden by CROP_API_<FIELD> variables.
        CROP_API_DATA_DIR moves db and uploads unless those are set explicitly.
        """
        values = {}
        for f in fields(cls):
            raw = os.environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.type is list:
                values[f.name] = [o.strip() for o in raw.split(",") if o.strip()]
            else:
                values[f.name] = f.type(raw)

        data_dir = values.get("data_dir")
        if data_dir is not None:
            values.setdefault("db_path", data_dir / "disease_detection.db")
            values.setdefault("uploads_dir", data_dir / "uploads")

        return cls(**values)
