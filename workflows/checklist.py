"""Evidence checklist loading.

The checklist for a visa route is defined outside this application. It is
read from a JSON document of the form::

    {
      "categories": ["Passport", "Bank Statement"],
      "evidence": [
        {"id": "passport", "name": "Current passport", "mandatory": true}
      ],
      "combined": [
        {"id": "funds", "name": "Proof of funds", "relationship": "any",
         "evidence": ["bank-statements", "savings"]}
      ]
    }

``categories`` are group templates created up front so ingestion can file
documents into them.
"""

import json
import os
from dataclasses import dataclass
from typing import Dict, List, Tuple, TYPE_CHECKING

from casefile import CaseFile
from .models import ALL, ANY, CombinedEvidenceGroup, RequiredEvidence

if TYPE_CHECKING:
    from .store import Workspace


class ChecklistError(ValueError):
    """Raised when a checklist document is malformed."""
    pass


@dataclass(frozen=True)
class Checklist:
    """Parsed checklist: group templates plus evidence slots."""
    categories: Tuple[str, ...] = ()
    evidence: Tuple[RequiredEvidence, ...] = ()
    combined: Tuple[CombinedEvidenceGroup, ...] = ()


def load_checklist(path: str) -> Checklist:
    """Read and validate a checklist JSON file.

    Raises:
        ChecklistError: If the file is missing or malformed
    """
    if not os.path.exists(path):
        raise ChecklistError(f"Checklist file not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ChecklistError(f"Invalid JSON in checklist {path}: {e}")
    return parse_checklist(data)


def _list_field(data: Dict, key: str, owner: str = "checklist") -> List:
    """Return ``data[key]`` as a list; a missing key is an empty list."""
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ChecklistError(f"'{key}' in {owner} must be a list, got {type(value).__name__}")
    return value


def parse_checklist(data: Dict) -> Checklist:
    """Validate decoded checklist JSON and build the records."""
    if not isinstance(data, dict):
        raise ChecklistError("Checklist must be a JSON object")

    categories: List[str] = []
    for name in _list_field(data, "categories"):
        if not isinstance(name, str) or not name.strip():
            raise ChecklistError(f"Invalid category name: {name!r}")
        if name.strip() not in categories:
            categories.append(name.strip())

    evidence: List[RequiredEvidence] = []
    seen = set()
    for entry in _list_field(data, "evidence"):
        if not isinstance(entry, dict) or not entry.get("id") or not entry.get("name"):
            raise ChecklistError(f"Evidence entries need an id and a name: {entry!r}")
        evidence_id = str(entry["id"])
        if evidence_id in seen:
            raise ChecklistError(f"Duplicate evidence id: {evidence_id}")
        seen.add(evidence_id)
        evidence.append(RequiredEvidence(
            id=evidence_id,
            name=str(entry["name"]),
            is_mandatory=bool(entry.get("mandatory", True)),
            description=entry.get("description"),
        ))

    combined: List[CombinedEvidenceGroup] = []
    for entry in _list_field(data, "combined"):
        if not isinstance(entry, dict) or not entry.get("id") or not entry.get("name"):
            raise ChecklistError(f"Combined entries need an id and a name: {entry!r}")
        relationship = entry.get("relationship", ALL)
        if relationship not in (ALL, ANY):
            raise ChecklistError(
                f"Invalid relationship '{relationship}' for {entry['id']}. Must be 'all' or 'any'"
            )
        members = tuple(str(e) for e in _list_field(entry, "evidence", owner=entry["id"]))
        unknown = [e for e in members if e not in seen]
        if unknown:
            raise ChecklistError(f"Combined group {entry['id']} references unknown evidence: {unknown}")
        combined.append(CombinedEvidenceGroup(
            id=str(entry["id"]),
            name=str(entry["name"]),
            evidence_ids=members,
            relationship=relationship,
        ))

    return Checklist(categories=tuple(categories), evidence=tuple(evidence), combined=tuple(combined))


def apply_checklist(workspace: "Workspace", checklist: Checklist) -> None:
    """Create the checklist's category groups and install its evidence slots."""
    from .store import CreateGroup, SetChecklist

    existing_tags = {g.tag for g in workspace.snapshot.groups}
    for name in checklist.categories:
        if name not in existing_tags:
            workspace.dispatch(CreateGroup(name))
    workspace.dispatch(SetChecklist(evidence=checklist.evidence, combined=checklist.combined))

    CaseFile.print_right(
        f"Checklist: {len(checklist.evidence)} evidence slot(s), "
        f"{len(checklist.combined)} combined group(s), "
        f"{len(checklist.categories)} categor{'y' if len(checklist.categories) == 1 else 'ies'}"
    )
