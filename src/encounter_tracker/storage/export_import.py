"""JSON export/import of encounter state for backups and sharing."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from encounter_tracker.models.encounter import EncounterSnapshot
from encounter_tracker.storage.state_migrations import CURRENT_VERSION, migrate_state

MAX_IMPORT_BYTES = 10 * 1024 * 1024


class ExportedState(BaseModel):
    version: int = Field(ge=1)
    exported_at: datetime
    data: EncounterSnapshot


class ImportResult(BaseModel):
    success: bool
    error: Optional[str] = None
    data: Optional[EncounterSnapshot] = None
    warning: Optional[str] = None


def export_state(snapshot: EncounterSnapshot) -> str:
    """Serialize a snapshot into the backup file format."""
    exported = ExportedState(
        version=CURRENT_VERSION,
        exported_at=datetime.now(timezone.utc),
        data=snapshot,
    )
    return exported.model_dump_json(indent=2)


def validate_import_compatibility(version: int, current_version: int = CURRENT_VERSION) -> tuple[bool, str | None]:
    """(compatible, warning). Newer files are refused; older ones are migrated."""
    if version > current_version:
        return False, (
            f"This backup was created with a newer version (v{version}). "
            f"Current version is v{current_version}. Import may fail or lose data."
        )
    if version < current_version:
        return True, (
            f"This backup is from an older version (v{version}) and will be upgraded "
            f"to v{current_version}."
        )
    return True, None


def import_state(json_string: str) -> ImportResult:
    """Parse and validate a backup. Never raises; failures come back in the result."""
    try:
        parsed = json.loads(json_string)
    except json.JSONDecodeError:
        return ImportResult(success=False, error="Invalid JSON format. Please check the file.")

    if not isinstance(parsed, dict) or not isinstance(parsed.get("data"), dict):
        return ImportResult(success=False, error="Invalid file format: missing data section.")

    version = parsed.get("version")
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        return ImportResult(success=False, error="Invalid file format: missing or bad version.")

    compatible, warning = validate_import_compatibility(version)
    if not compatible:
        return ImportResult(success=False, error=warning)

    migrated = migrate_state({"state": parsed["data"], "version": version})
    try:
        snapshot = EncounterSnapshot.model_validate(migrated["state"])
    except ValidationError as e:
        messages = ", ".join(err["msg"] for err in e.errors())
        return ImportResult(success=False, error=f"Invalid file format: {messages}")

    return ImportResult(success=True, data=snapshot, warning=warning)


def import_state_from_file(path: Path | str, max_bytes: int = MAX_IMPORT_BYTES) -> ImportResult:
    path = Path(path)
    if path.suffix.lower() != ".json":
        return ImportResult(success=False, error="Please select a .json file")
    try:
        if path.stat().st_size > max_bytes:
            return ImportResult(
                success=False,
                error=f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
            )
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return ImportResult(success=False, error=f"Failed to read file: {e}")
    return import_state(text)
