"""Ingestion workflow for uploaded files.

Upload records arrive as ``(raw_path, filename, size, pages)`` from the
upload/classification process. Each is classified from its path, then filed
into the first group whose category matches the detected document type, or
into Unclassified when no group matches.
"""

import dataclasses
import json
import os
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple, TYPE_CHECKING

from casefile import CaseFile
from .models import CaseState, DocumentFile, DocumentGroup, SINK_GROUP_ID
from .path_classifier import DOCUMENT_TYPE_LABELS, ParsedDocument, classify_path
from .repository import find_file, find_group, update_groups
from .review import invalidate

if TYPE_CHECKING:
    from .store import Workspace


class ManifestError(ValueError):
    """Raised when an upload manifest cannot be read."""
    pass


@dataclass(frozen=True)
class IncomingFile:
    """One upload record at the ingestion boundary.

    Attributes:
        raw_path: Folder path the file was uploaded from
        filename: Original filename
        size: Size in bytes
        pages: Page count reported by the uploader
    """
    raw_path: str
    filename: str
    size: int = 0
    pages: int = 1

    @property
    def is_valid(self) -> bool:
        return bool(self.filename and self.filename.strip()) and self.pages >= 1 and self.size >= 0


def target_group_for(state: CaseState, parsed: ParsedDocument) -> DocumentGroup:
    """First non-Unclassified group tagged with the detected type, else Unclassified."""
    label = DOCUMENT_TYPE_LABELS.get(parsed.document_type)
    for group in state.groups:
        if group.is_sink:
            continue
        if group.tag == parsed.document_type or (label and group.tag == label):
            return group
    return find_group(state, SINK_GROUP_ID)


def classified_file(record: IncomingFile, parsed: ParsedDocument, file_id: str) -> DocumentFile:
    """Build the DocumentFile for an incoming record."""
    return DocumentFile(
        id=file_id,
        name=record.filename.strip(),
        size=record.size,
        pages=record.pages,
        is_new=True,
        who=parsed.who,
        document_type=parsed.document_type,
        date=parsed.date,
        generated_name=parsed.generated_name,
        relative_path=record.raw_path,
    )


def ingest_files(state: CaseState, incoming: Sequence[IncomingFile],
                 file_ids: Sequence[str]) -> CaseState:
    """File a batch of upload records in one step.

    Args:
        incoming: Upload records
        file_ids: Ids for the new files, parallel to ``incoming``

    Invalid records (blank name, no pages, negative size) and records whose id
    is already taken are skipped. Groups receiving files are sent back to
    pending if they had been reviewed.
    """
    additions: Dict[str, List[DocumentFile]] = {}
    used = set()

    for record, file_id in zip(incoming, file_ids):
        if not record.is_valid or not file_id or file_id in used:
            continue
        if find_file(state, file_id) is not None:
            continue
        used.add(file_id)
        parsed = classify_path(record.raw_path, record.filename)
        target = target_group_for(state, parsed)
        additions.setdefault(target.id, []).append(classified_file(record, parsed, file_id))

    if not additions:
        return state

    updated = {}
    for group_id, new_files in additions.items():
        group = find_group(state, group_id)
        updated[group_id] = invalidate(dataclasses.replace(group, files=group.files + tuple(new_files)))
    return update_groups(state, updated)


def load_manifest(path: str) -> List[IncomingFile]:
    """Read upload records from a JSON manifest.

    The manifest is a list (or an object with a ``files`` list) of entries
    with ``path``, ``filename``, ``size`` and ``pages``. A ``filename``
    missing from an entry is taken from the last segment of ``path``.

    Raises:
        ManifestError: If the file is missing or malformed
    """
    if not os.path.exists(path):
        raise ManifestError(f"Manifest not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in manifest {path}: {e}")

    return parse_manifest(data)


def parse_manifest(data) -> List[IncomingFile]:
    """Convert decoded manifest JSON into IncomingFile records."""
    if isinstance(data, dict):
        data = data.get("files")
    if not isinstance(data, list):
        raise ManifestError("Manifest must be a list of files or an object with a 'files' list")

    records = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ManifestError(f"Manifest entry {i} is not an object")
        raw_path = entry.get("path") or ""
        filename = entry.get("filename")
        if not isinstance(raw_path, str) or not isinstance(filename, (str, type(None))):
            raise ManifestError(f"Manifest entry {i} has a non-string path or filename")
        if not filename:
            raw_path, _, filename = raw_path.replace('\\', '/').rpartition('/')
        try:
            size = int(entry.get("size") or 0)
            pages = int(entry.get("pages") or 1)
        except (TypeError, ValueError):
            raise ManifestError(f"Manifest entry {i} has a non-numeric size or page count")
        records.append(IncomingFile(raw_path=raw_path, filename=filename, size=size, pages=pages))
    return records


def _log_ingested(before: CaseState, after: CaseState, file_ids: Sequence[str]) -> None:
    """Log each filed record to the summary panel."""
    for file_id in file_ids:
        located = find_file(after, file_id)
        if located is None or find_file(before, file_id) is not None:
            continue
        group, f = located
        line1 = f"{f.generated_name or f.name}"
        line2 = f"  {f.relative_path or '.'}/{f.name} → {group.title}"
        CaseFile.print_left(line1, line2)


def ingest_inbox(workspace: "Workspace", manifest_path: str) -> Tuple[int, int]:
    """Load a manifest and file its records into the workspace.

    Returns:
        Tuple of (records read, records filed)
    """
    from .store import IngestFiles, new_id

    records = load_manifest(manifest_path)
    CaseFile.print_right(f"Read {len(records)} upload record(s) from {manifest_path}")

    file_ids = tuple(new_id("file") for _ in records)
    before = workspace.snapshot
    workspace.dispatch(IngestFiles(files=tuple(records), file_ids=file_ids))
    after = workspace.snapshot

    _log_ingested(before, after, file_ids)
    filed = sum(1 for fid in file_ids if find_file(after, fid) is not None)
    skipped = len(records) - filed
    if skipped:
        CaseFile.print_right(f"[yellow]Skipped {skipped} invalid record(s)[/yellow]")
    return (len(records), filed)
