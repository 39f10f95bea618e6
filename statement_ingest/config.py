import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path


@dataclass(frozen=True)
class DirectoryLayout:
    """The four lifecycle directories of one ingestion format."""
    inbox: Path
    processing: Path
    archive: Path
    quarantine: Path

    def all(self):
        return (self.inbox, self.processing, self.archive, self.quarantine)


def _layout(prefix: str, base: Path) -> DirectoryLayout:
    return DirectoryLayout(
        inbox=Path(os.getenv(f"{prefix}_INBOX_DIR", base / "inbox")),
        processing=Path(os.getenv(f"{prefix}_PROCESSING_DIR", base / "processing")),
        archive=Path(os.getenv(f"{prefix}_ARCHIVE_DIR", base / "archive")),
        quarantine=Path(os.getenv(f"{prefix}_QUARANTINE_DIR", base / "quarantine")),
    )


class Settings:
    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/ingestion.db")

    # Directories
    BASE_DIR = Path(__file__).parent.parent
    DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
    MT940_BASE_DIR = Path(os.getenv("MT940_BASE_DIR", DATA_DIR / "mt940"))
    VAN_BASE_DIR = Path(os.getenv("VAN_BASE_DIR", DATA_DIR / "van"))

    # API Settings
    API_V1_STR = "/api"
    PROJECT_NAME = "Statement Ingestion"

    # Ingestion policy
    MAX_FILE_SIZE_BYTES = int(os.getenv("MAX_FILE_SIZE_BYTES", 50 * 1024 * 1024))  # 50MiB
    FILE_STABILITY_WINDOW_SEC = float(os.getenv("FILE_STABILITY_WINDOW_SEC", "10"))
    BALANCE_TOLERANCE = Decimal(os.getenv("BALANCE_TOLERANCE", "0.02"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    def __init__(self):
        self.MT940_DIRS = _layout("MT940", self.MT940_BASE_DIR)
        self.VAN_DIRS = _layout("VAN", self.VAN_BASE_DIR)

    def ensure_directories(self):
        """Create every lifecycle directory for both formats"""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        for layout in (self.MT940_DIRS, self.VAN_DIRS):
            for directory in layout.all():
                directory.mkdir(parents=True, exist_ok=True)


settings = Settings()
