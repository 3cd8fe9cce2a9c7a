"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads environment variables (loaded from the project `.env`) and derives the
locations of every pipeline file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

DISCOVERED_FILE = "discovered.json"
VERIFIED_FILE = "verified.json"
MERGE_REPORT_FILE = "merge-report.json"
ENRICHMENT_REPORT_FILE = "enrichment-report.json"
ENRICHMENT_OVERLAY_FILE = "enrichment-data.json"


@dataclass(frozen=True)
class Settings:
    """Container for pipeline configuration read from the environment.

    Attributes:
        sec_user_agent: SEC User-Agent header (name + contact email).
        data_dir: Directory holding intermediate files and reports.
        directory_path: The shared investor directory JSON file.
        overlay_path: Operator-curated enrichment overlay JSON file.
        rules_path: Optional override for the non-VC rule table.
        request_interval: Minimum seconds between two SEC requests.
        request_timeout: Socket timeout in seconds for SEC requests.
        log_level: Root logging level name.
        log_path: File the CLI appends its log to.
    """
    sec_user_agent: str
    data_dir: Path
    directory_path: Path
    overlay_path: Path
    rules_path: Path | None
    request_interval: float
    request_timeout: float
    log_level: str
    log_path: Path

    @property
    def discovered_path(self) -> Path:
        return self.data_dir / DISCOVERED_FILE

    @property
    def verified_path(self) -> Path:
        return self.data_dir / VERIFIED_FILE

    @property
    def merge_report_path(self) -> Path:
        return self.data_dir / MERGE_REPORT_FILE

    @property
    def enrichment_report_path(self) -> Path:
        return self.data_dir / ENRICHMENT_REPORT_FILE

    def require_user_agent(self) -> str:
        """Return the SEC User-Agent, failing when it is not configured.

        Raises:
            RuntimeError: if `SEC_USER_AGENT` is not set in the environment.
        """
        if not self.sec_user_agent:
            raise RuntimeError(
                "SEC_USER_AGENT is required. Set it in .env "
                "(example: 'Your Name your.email@example.com')."
            )
        return self.sec_user_agent


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object."""
    data_dir = Path(os.getenv("PIPELINE_DATA_DIR", "data/pipeline"))
    directory_path = Path(os.getenv("INVESTOR_DIRECTORY", "data/investors.json"))
    overlay_path = Path(
        os.getenv("ENRICHMENT_OVERLAY", str(data_dir / ENRICHMENT_OVERLAY_FILE))
    )
    rules_env = os.getenv("NON_VC_RULES_PATH", "").strip()

    return Settings(
        sec_user_agent=os.getenv("SEC_USER_AGENT", "").strip(),
        data_dir=data_dir,
        directory_path=directory_path,
        overlay_path=overlay_path,
        rules_path=Path(rules_env) if rules_env else None,
        request_interval=float(os.getenv("SEC_REQUEST_INTERVAL", "0.12")),
        request_timeout=float(os.getenv("SEC_REQUEST_TIMEOUT", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip() or "INFO",
        log_path=Path(os.getenv("PIPELINE_LOG_FILE", "logs/pipeline.log")),
    )
