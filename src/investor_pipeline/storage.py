"""JSON file helpers shared by every stage.

Centralizes reading and validating the intermediate files, rewriting the
investor directory, and the timestamped backup taken before a rewrite.
"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from investor_pipeline.models import DirectoryEntry

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class MissingInputError(RuntimeError):
    """An upstream file a stage depends on does not exist."""

    def __init__(self, path: Path, producer: str) -> None:
        super().__init__(f"No {path.name} found at {path}. Run `{producer}` first.")
        self.path = path
        self.producer = producer


class InvalidInputError(RuntimeError):
    """An upstream file exists but is not valid JSON or has the wrong shape."""


def require_file(path: Path, producer: str) -> Path:
    """Return `path` if it exists, otherwise raise `MissingInputError`.

    Args:
        path: File the calling stage needs.
        producer: Command that writes the file, used in the error message.
    """
    if not path.exists():
        raise MissingInputError(path, producer)
    return path


def read_json(path: Path) -> Any:
    """Parse a JSON file.

    Raises:
        InvalidInputError: if the file is not valid JSON.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"{path} is not valid JSON: {e}") from e


def write_json(path: Path, payload: Any) -> None:
    """Write `payload` as indented UTF-8 JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)
        fh.write("\n")


def load_model(path: Path, model: type[M], producer: str) -> M:
    """Load a required file and validate it against `model`."""
    raw = read_json(require_file(path, producer))
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise InvalidInputError(f"{path} does not match {model.__name__}: {e}") from e


def load_model_list(path: Path, model: type[M], producer: str) -> list[M]:
    """Load a required JSON array file and validate every element."""
    raw = read_json(require_file(path, producer))
    try:
        return TypeAdapter(list[model]).validate_python(raw)  # type: ignore[valid-type]
    except ValidationError as e:
        raise InvalidInputError(f"{path} does not match list[{model.__name__}]: {e}") from e


def write_models(path: Path, records: Iterable[Any]) -> int:
    """Write a list of models (via `to_json_dict`) and return the count."""
    payload = [r.to_json_dict() for r in records]
    write_json(path, payload)
    return len(payload)


# --------------------------------------------------
# Directory
# --------------------------------------------------
def load_directory(path: Path, *, required: bool = False) -> list[DirectoryEntry]:
    """Load the investor directory.

    Args:
        path: Directory JSON file.
        required: When False a missing file is an empty directory.

    Returns:
        Directory entries in file order.
    """
    if not path.exists():
        if required:
            raise MissingInputError(path, "investor-pipeline merge")
        log.info("Directory %s not found; treating it as empty.", path)
        return []
    return load_model_list(path, DirectoryEntry, "investor-pipeline merge")


def save_directory(path: Path, entries: Iterable[DirectoryEntry]) -> int:
    """Rewrite the directory file wholesale and return the entry count."""
    return write_models(path, entries)


def backup_stamp(now: datetime) -> str:
    """Return a filename-safe UTC timestamp (':' and '.' replaced by '-')."""
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z").replace(":", "-").replace(".", "-")


def backup_file(path: Path, now: datetime | None = None) -> Path | None:
    """Copy `path` to `<name>.backup-<timestamp>` next to it.

    Returns:
        The backup path, or None when there is nothing to back up.
    """
    if not path.exists():
        log.warning("Nothing to back up: %s does not exist yet.", path)
        return None
    stamp = backup_stamp(now or datetime.now(timezone.utc))
    target = path.with_name(f"{path.name}.backup-{stamp}")
    shutil.copy2(path, target)
    log.info("Backup created: %s", target.name)
    return target
