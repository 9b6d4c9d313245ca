"""
Console configuration

Values come from the environment (optionally a .env file in the working
directory) and are gathered into a Settings model that the application
passes down to the services it builds.
"""
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

STREAM_INTENT_KEY = "logStreaming"
AUTO_START_KEY = "autoStartLogMonitor"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _default_export_dir() -> Path:
    downloads = Path.home() / "Downloads"
    return downloads if downloads.is_dir() else Path.cwd()


class Settings(BaseModel):
    log_file: Path
    state_db: Path
    export_dir: Path
    app_log_dir: Path = Path("app_log")
    initial_lines: int = 500
    poll_interval: float = 2.0
    call_timeout: float = 10.0
    search_debounce: float = 0.3
    service_name: str = "nanobot"


def load_settings(log_file: Optional[str] = None) -> Settings:
    """
    Build settings from the environment

    Args:
        log_file: Explicit log file path, overrides AMC_LOG_FILE

    Returns:
        Populated Settings instance
    """
    default_log = Path.home() / ".nanobot" / "logs" / "nanobot.log"
    default_db = Path.home() / ".amc" / "state.db"

    return Settings(
        log_file=Path(log_file or os.getenv("AMC_LOG_FILE", str(default_log))).expanduser(),
        state_db=Path(os.getenv("AMC_STATE_DB", str(default_db))).expanduser(),
        export_dir=Path(os.getenv("AMC_EXPORT_DIR", str(_default_export_dir()))).expanduser(),
        app_log_dir=Path(os.getenv("AMC_APP_LOG_DIR", "app_log")),
        initial_lines=int(os.getenv("AMC_INITIAL_LINES", "500")),
        poll_interval=float(os.getenv("AMC_POLL_INTERVAL", "2.0")),
        call_timeout=float(os.getenv("AMC_CALL_TIMEOUT", "10.0")),
        search_debounce=float(os.getenv("AMC_SEARCH_DEBOUNCE", "0.3")),
        service_name=os.getenv("AMC_SERVICE_NAME", "nanobot"),
    )


def setup_logging(settings: Settings, debug: bool = False) -> None:
    """Send console diagnostics to a file, the terminal belongs to the UI"""
    if not settings.app_log_dir.exists():
        settings.app_log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        filename=str(settings.app_log_dir / "console.log"),
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
