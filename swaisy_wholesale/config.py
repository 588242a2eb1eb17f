"""Wholesale ordering app configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .common.models.user import User
from .common.services.logging import log_event
from .services.user_directory import DEFAULT_USERS

STORAGE_FILE = "file"
STORAGE_SQL = "sql"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class WholesaleConfig:
    """Settings for one app instance."""

    secret_key: str
    project_root: Path
    data_dir: Path
    storage: str = STORAGE_FILE
    database_url: Optional[str] = None
    seed_catalog: bool = True
    port: int = 8080
    max_upload_bytes: int = 16 * 1024 * 1024
    users: List[User] = field(default_factory=lambda: [User(**vars(u)) for u in DEFAULT_USERS])

    @property
    def users_file(self) -> Path:
        return self.data_dir / "users.json"

    @property
    def resolved_database_url(self) -> str:
        return self.database_url or f"sqlite:///{self.data_dir / 'swaisy.db'}"

    @classmethod
    def load(cls) -> "WholesaleConfig":
        """Build settings from the environment (``.env`` honoured) and make sure the data dir exists."""

        package_root = Path(__file__).resolve().parent
        project_root = package_root.parent
        load_dotenv(project_root / ".env")

        storage = os.environ.get("SWAISY_STORAGE", STORAGE_FILE).strip().lower()
        if storage not in (STORAGE_FILE, STORAGE_SQL):
            raise ValueError(f"SWAISY_STORAGE must be '{STORAGE_FILE}' or '{STORAGE_SQL}', got '{storage}'")

        data_dir = Path(os.environ.get("SWAISY_DATA_DIR", str(project_root / "data"))).expanduser()
        config = cls(
            secret_key=os.environ.get("SWAISY_SECRET_KEY", "swaisy-wholesale-dev"),
            project_root=project_root,
            data_dir=data_dir,
            storage=storage,
            database_url=os.environ.get("DATABASE_URL") or None,
            seed_catalog=_env_flag("SWAISY_SEED_CATALOG", True),
            port=int(os.environ.get("PORT", "8080")),
        )
        config.data_dir.mkdir(parents=True, exist_ok=True)

        # users.json, when present, replaces the built-in accounts
        if config.users_file.exists():
            try:
                raw = json.loads(config.users_file.read_text(encoding="utf-8"))
                if isinstance(raw, list):
                    config.users = [User.from_dict(entry) for entry in raw if isinstance(entry, dict)]
                    log_event("info", "config.users_loaded", path=str(config.users_file), count=len(config.users))
            except (OSError, ValueError) as exc:
                log_event("warning", "config.users_invalid", path=str(config.users_file), error=str(exc))

        return config
