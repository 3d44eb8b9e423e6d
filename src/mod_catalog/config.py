import os
import sys
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_dir() -> Path:
    if env := os.environ.get("MODCAT_DATA_DIR"):
        return Path(env)
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    else:
        base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return base / "mod-catalog"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MODCAT_",
        extra="ignore",
    )

    data_dir: Path = Path("")
    db_path: Path = Path("")
    # Root directory uploaded assets are written under (``/images/...`` paths).
    public_dir: Path = Path("")
    default_page_size: int = 10
    max_page_size: int = 100
    host: str = "127.0.0.1"
    port: int = 8430

    @model_validator(mode="after")
    def _resolve_data_paths(self) -> "Settings":
        if self.data_dir == Path(""):
            self.data_dir = _default_data_dir()
        if self.db_path == Path(""):
            self.db_path = self.data_dir / "catalog.db"
        if self.public_dir == Path(""):
            self.public_dir = self.data_dir / "public"
        return self


settings = Settings()
