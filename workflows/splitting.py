"""Split operator for unclassified scans.

Extracting pages from a multi-document scan turns one Unclassified file into
two. Pages are conserved: the original keeps what was not extracted (or
disappears when nothing is left) and the new file gets the extracted pages.
"""

import dataclasses
import os
from typing import Iterable

from .models import CaseState, DocumentFile
from .repository import find_file, sink_group, update_group


def split_file_name(name: str) -> str:
    """Normalize the name of an extracted file, adding .pdf if no extension."""
    name = (name or "").strip()
    if name and not os.path.splitext(name)[1]:
        name = f"{name}.pdf"
    return name


def split_file(state: CaseState, file_id: str, selected_page_indices: Iterable[int],
               new_file_name: str, new_file_id: str) -> CaseState:
    """Extract the selected pages of an Unclassified file into a new file.

    Args:
        file_id: File to split (must be in the Unclassified group)
        selected_page_indices: Zero-based page indices to extract
        new_file_name: Name of the extracted file (".pdf" appended if needed)
        new_file_id: Id for the extracted file

    Returns:
        New state, or the input state if the split is not possible
    """
    sink = sink_group(state)
    index = sink.index_of(file_id)
    if index < 0 or not new_file_id or find_file(state, new_file_id) is not None:
        return state

    original = sink.files[index]
    if original.is_removed:
        return state

    selected = set(selected_page_indices)
    if not selected or any(not 0 <= i < original.pages for i in selected):
        return state

    name = split_file_name(new_file_name)
    if not name:
        return state

    extracted = len(selected)
    remaining = original.pages - extracted
    extracted_size = original.size * extracted // original.pages

    files = list(sink.files)
    if remaining > 0:
        files[index] = dataclasses.replace(
            original, pages=remaining, size=original.size - extracted_size
        )
    else:
        del files[index]

    files.append(DocumentFile(
        id=new_file_id,
        name=name,
        size=extracted_size,
        pages=extracted,
        is_new=True,
        who=original.who,
        relative_path=original.relative_path,
    ))

    # Unclassified carries no review state, so no invalidation here
    return update_group(state, dataclasses.replace(sink, files=tuple(files)))
