"""Configuration management for githelper."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, FrozenSet

from dotenv import load_dotenv

load_dotenv()  # Load .env file if it exists


# Placeholder shipped with the package; treated as "no key configured"
PACKAGED_API_KEY = "PASTE_YOUR_API_KEY_HERE"

DEFAULT_EXCLUDED_DIRS: FrozenSet[str] = frozenset({
    ".git",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    "dist",
    "build",
    "out",
    "target",
})

DEFAULT_AI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_AI_MODEL = "gemini-2.0-flash"


def normalize_path(path) -> Path:
    """Expand ~ and resolve to an absolute path."""
    if isinstance(path, str):
        path = Path(path)
    return path.expanduser().resolve()


@dataclass
class Config:
    """Configuration class for githelper with validation and defaults."""

    # Workspace
    workspace_dir: Path = field(default_factory=Path.cwd)
    data_dir: Path = field(default_factory=lambda: Path.home() / ".githelper")

    # Repository scanning
    scan_max_depth: int = 3
    excluded_dirs: FrozenSet[str] = DEFAULT_EXCLUDED_DIRS

    # Background remote check
    poll_interval: float = 30.0
    poll_max_depth: int = 1

    # Commit message generation
    ai_model: str = DEFAULT_AI_MODEL
    ai_base_url: str = DEFAULT_AI_BASE_URL
    default_api_key: Optional[str] = PACKAGED_API_KEY
    diff_char_limit: int = 3000
    suggestion_count: int = 3

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.workspace_dir = normalize_path(self.workspace_dir)
        self.data_dir = normalize_path(self.data_dir)
        self.excluded_dirs = frozenset(self.excluded_dirs)

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {valid_log_levels}")
        self.log_level = self.log_level.upper()

        if self.scan_max_depth < 0:
            raise ValueError("scan_max_depth must be non-negative")

        if self.poll_max_depth < 0:
            raise ValueError("poll_max_depth must be non-negative")

        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        if self.diff_char_limit <= 0:
            raise ValueError("diff_char_limit must be positive")

        if self.suggestion_count <= 0:
            raise ValueError("suggestion_count must be positive")

    @property
    def secrets_file(self) -> Path:
        """File holding user secrets such as the API key."""
        return self.data_dir / "secrets.json"

    @property
    def html_dir(self) -> Path:
        """Directory where rendered HTML views are written."""
        return self.data_dir / "views"


def _split_names(value: Optional[str]) -> FrozenSet[str]:
    if not value:
        return frozenset()
    return frozenset(name.strip() for name in value.split(",") if name.strip())


def load_configuration(workspace_dir: Optional[Path] = None) -> Config:
    """Load configuration from environment variables with defaults."""
    try:
        workspace = workspace_dir or Path(os.getenv("GITHELPER_WORKSPACE", str(Path.cwd())))
        return Config(
            workspace_dir=workspace,
            data_dir=Path(os.getenv("GITHELPER_DATA_DIR", str(Path.home() / ".githelper"))),
            scan_max_depth=int(os.getenv("GITHELPER_SCAN_DEPTH", "3")),
            excluded_dirs=DEFAULT_EXCLUDED_DIRS | _split_names(os.getenv("GITHELPER_EXCLUDED_DIRS")),
            poll_interval=float(os.getenv("GITHELPER_POLL_INTERVAL", "30")),
            poll_max_depth=int(os.getenv("GITHELPER_POLL_DEPTH", "1")),
            ai_model=os.getenv("GITHELPER_AI_MODEL", DEFAULT_AI_MODEL),
            ai_base_url=os.getenv("GITHELPER_AI_BASE_URL", DEFAULT_AI_BASE_URL),
            default_api_key=os.getenv("GITHELPER_API_KEY", PACKAGED_API_KEY),
            diff_char_limit=int(os.getenv("GITHELPER_DIFF_LIMIT", "3000")),
            log_level=os.getenv("GITHELPER_LOG_LEVEL", "INFO").upper(),
        )
    except (ValueError, TypeError) as e:
        raise ValueError(f"Configuration error: {e}")


def validate_configuration(config: Config) -> List[str]:
    """Validate configuration and return any errors or warnings."""
    errors = []

    if not config.workspace_dir.is_dir():
        errors.append(f"ERROR: Workspace directory does not exist: {config.workspace_dir}")

    try:
        config.data_dir.mkdir(parents=True, exist_ok=True)
        test_file = config.data_dir / ".test_write"
        test_file.write_text("test")
        test_file.unlink()
    except PermissionError:
        errors.append(f"ERROR: No write permission for data directory: {config.data_dir}")
    except OSError as e:
        errors.append(f"ERROR: Cannot access data directory {config.data_dir}: {e}")

    if not config.ai_base_url.startswith(("http://", "https://")):
        errors.append(f"WARNING: AI base URL may be invalid: {config.ai_base_url}")

    if config.poll_interval < 5:
        errors.append("WARNING: Very short poll_interval will fetch remotes frequently")

    if config.scan_max_depth > 6:
        errors.append("WARNING: High scan_max_depth may make repository scans slow")

    logging.getLogger('githelper.config').debug(f"Configuration validated with {len(errors)} issue(s)")
    return errors
