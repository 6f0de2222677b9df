"""Serialization of contact lists to and from export files.

JSON exports hold a list of records in their camelCase dict form and can be
fed back into `remove`. CSV exports carry the same columns for spreadsheets;
they can be read back too, with `connectedAt` parsed as an integer.
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import List, Sequence

from contactsweep.domain.interfaces.filesystem import FileSystem
from contactsweep.domain.models.common import FilePath
from contactsweep.domain.models.contact import ContactRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "firstName",
    "lastName",
    "name",
    "headline",
    "publicIdentifier",
    "profileUrl",
    "entityUrn",
    "connectionUrn",
    "connectedAt",
    "profilePicture",
]
SUPPORTED_SUFFIXES = (".json", ".csv")


class ContactFileError(ValueError):
    """Raised when an export file has an unsupported format or unreadable content."""


def _suffix(file_path: FilePath) -> str:
    suffix = Path(file_path).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ContactFileError(f"Unsupported contact file type '{suffix or file_path}'. Use .json or .csv.")
    return suffix


def contacts_to_json(records: Sequence[ContactRecord]) -> str:
    return json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)


def contacts_to_csv(records: Sequence[ContactRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for record in records:
        row = record.to_dict()
        if row["connectedAt"] is None:
            row["connectedAt"] = ""
        writer.writerow(row)
    return buffer.getvalue()


def contacts_from_json(text: str) -> List[ContactRecord]:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ContactFileError(f"Contact file is not valid JSON: {e}") from e
    # Accept the orchestrator's {"records": [...]} shape as well as a bare list
    if isinstance(data, dict):
        data = data.get("records")
    if not isinstance(data, list):
        raise ContactFileError("Contact file must contain a list of contacts.")
    return [ContactRecord.from_dict(entry) for entry in data if isinstance(entry, dict)]


def contacts_from_csv(text: str) -> List[ContactRecord]:
    records = []
    for row in csv.DictReader(io.StringIO(text)):
        connected_at = (row.get("connectedAt") or "").strip()
        entry = dict(row)
        entry["connectedAt"] = int(connected_at) if connected_at.isdigit() else None
        records.append(ContactRecord.from_dict(entry))
    return records


async def save_contacts(fs: FileSystem, file_path: FilePath, records: Sequence[ContactRecord]) -> None:
    """Writes `records` to `file_path`, choosing the format from its suffix."""
    suffix = _suffix(file_path)
    content = contacts_to_json(records) if suffix == ".json" else contacts_to_csv(records)
    await fs.write_file(file_path, content)
    logger.info(f"Saved {len(records)} contacts to {file_path}")


async def load_contacts(fs: FileSystem, file_path: FilePath) -> List[ContactRecord]:
    """Reads contacts from a .json or .csv export."""
    suffix = _suffix(file_path)
    text = await fs.read_file(file_path)
    records = contacts_from_json(text) if suffix == ".json" else contacts_from_csv(text)
    logger.info(f"Loaded {len(records)} contacts from {file_path}")
    return records
