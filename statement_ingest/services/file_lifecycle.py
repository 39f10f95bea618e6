"""
File lifecycle helpers shared by every ingestion pipeline.

A file moves inbox -> processing -> archive/YYYY/MM/DD or quarantine.
All moves are renames within the configured directories; failures raise
FileLifecycleError so the caller decides what happens to the file.
"""
import hashlib
import logging
import shutil
import time
import uuid
from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import FileLifecycleError

logger = logging.getLogger(__name__)

HASH_CHUNK_SIZE = 8192
REASON_SUFFIX = ".reason"


def _matches(path: Path, extensions: Iterable[str]) -> bool:
    name = path.name.lower()
    return any(name.endswith(ext.lower()) for ext in extensions)


def _size(path: Path) -> Optional[int]:
    try:
        return path.stat().st_size
    except FileNotFoundError:
        return None


def discover_stable_files(directory: Path, extensions: Iterable[str], window_seconds: float = 10) -> List[Path]:
    """
    List files in ``directory`` matching one of ``extensions`` whose size did
    not change over ``window_seconds``.

    Every candidate is sampled, then the window elapses once, then every
    candidate is sampled again. A missing or empty directory yields [].
    """
    directory = Path(directory)
    extensions = tuple(extensions)
    if not directory.is_dir():
        logger.debug("Inbox directory does not exist: %s", directory)
        return []

    candidates = sorted(p for p in directory.iterdir() if p.is_file() and _matches(p, extensions))
    if not candidates:
        logger.debug("No files found in inbox directory: %s", directory)
        return []

    first_sizes = {path: _size(path) for path in candidates}
    if window_seconds > 0:
        time.sleep(window_seconds)

    stable = []
    for path in candidates:
        before, after = first_sizes[path], _size(path)
        if before is not None and before == after:
            logger.debug("File is stable: %s (size: %s bytes)", path.name, after)
            stable.append(path)
        else:
            logger.debug("File is not stable: %s (%s -> %s bytes)", path.name, before, after)
    return stable


def _move(source: Path, destination: Path, what: str) -> Path:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(destination))
    except OSError as e:
        raise FileLifecycleError(f"Failed to move file to {what}: {source}") from e
    return destination


def move_to_processing(path: Path, processing_dir: Path) -> Path:
    """Claim an inbox file by moving it to processing under a unique name"""
    destination = Path(processing_dir) / f"{path.name}_{uuid.uuid4()}"
    logger.debug("Moving %s to processing as %s", path, destination.name)
    return _move(path, destination, "processing")


def compute_content_hash(path: Path) -> str:
    """Lowercase hex SHA-256 of the file's bytes"""
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise FileLifecycleError(f"Failed to compute SHA-256 for file: {path}") from e
    return digest.hexdigest()


def archive_path_for(path: Path, archive_dir: Path, today: Optional[date] = None) -> Path:
    today = today or date.today()
    return Path(archive_dir) / f"{today.year:04d}" / f"{today.month:02d}" / f"{today.day:02d}" / path.name


def move_to_archive(path: Path, archive_dir: Path, today: Optional[date] = None) -> Path:
    destination = archive_path_for(path, archive_dir, today)
    logger.info("Archiving %s to %s", path.name, destination.parent)
    return _move(path, destination, "archive")


def move_to_quarantine(path: Path, quarantine_dir: Path, reason: str) -> Path:
    """
    Move a file to quarantine and leave a ``<name>.reason`` note beside it.

    Callers also record the reason on the ImportRun when one exists.
    """
    logger.warning("Moving file to quarantine: %s. Reason: %s", path, reason)
    destination = _move(path, Path(quarantine_dir) / path.name, "quarantine")
    note = destination.with_name(destination.name + REASON_SUFFIX)
    try:
        note.write_text(reason + "\n", encoding="utf-8")
    except OSError as e:
        raise FileLifecycleError(f"Failed to write quarantine reason for: {destination}") from e
    return destination
