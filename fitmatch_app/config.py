"""Configuration helpers for the FitMatch suggestion engine."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_GRID_SIZE = 6
DEFAULT_SCAN_LIMIT = 5
DEFAULT_ADD_LIMIT = 15
DEFAULT_STALE_AFTER_SECONDS = 30 * 60


@dataclass
class AppConfig:
    """Configuration values for the suggestion engine services.

    Remote endpoints are optional: without a library URL the engine serves the
    bundled catalogue, and without a quota API URL credits are tracked in a
    local SQLite database.
    """

    library_url: Optional[str] = None
    library_api_key: Optional[str] = None
    library_timeout_seconds: float = 5.0
    library_stale_after_seconds: float = DEFAULT_STALE_AFTER_SECONDS
    board_base_url: str = ""
    quota_backend: str = "sqlite"
    quota_db_path: Optional[str] = None
    quota_api_url: Optional[str] = None
    quota_api_key: Optional[str] = None
    scan_limit: int = DEFAULT_SCAN_LIMIT
    add_limit: int = DEFAULT_ADD_LIMIT
    grid_size: int = DEFAULT_GRID_SIZE
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that secrets can be
        injected by the runtime environment.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("FITMATCH_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        def get_number(key: str, default: float) -> float:
            raw = get_value(key)
            if raw in (None, ""):
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ValueError(f"{key} must be numeric, got {raw!r}") from exc

        quota_backend = (get_value("quota_backend", "sqlite") or "sqlite").strip().lower()
        if quota_backend not in {"sqlite", "remote"}:
            raise ValueError(f"Unsupported quota_backend {quota_backend!r}")

        return cls(
            library_url=get_value("library_url"),
            library_api_key=get_value("library_api_key"),
            library_timeout_seconds=get_number("library_timeout_seconds", 5.0),
            library_stale_after_seconds=get_number(
                "library_stale_after_seconds", DEFAULT_STALE_AFTER_SECONDS
            ),
            board_base_url=get_value("board_base_url", "") or "",
            quota_backend=quota_backend,
            quota_db_path=get_value("quota_db_path"),
            quota_api_url=get_value("quota_api_url"),
            quota_api_key=get_value("quota_api_key"),
            scan_limit=int(get_number("scan_limit", DEFAULT_SCAN_LIMIT)),
            add_limit=int(get_number("add_limit", DEFAULT_ADD_LIMIT)),
            grid_size=int(get_number("grid_size", DEFAULT_GRID_SIZE)),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
