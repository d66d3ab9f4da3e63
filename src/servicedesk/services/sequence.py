"""Yearly sequential identifiers such as ``JOB-2024-007``."""

from __future__ import annotations

from typing import Iterable


def next_sequence_id(prefix: str, year: int, existing_ids: Iterable[str]) -> str:
    """Return the next ``<prefix>-<year>-<nnn>`` id after the highest in use."""
    stem = f"{prefix}-{year}-"
    highest = 0
    for existing in existing_ids:
        if not existing.startswith(stem):
            continue
        try:
            highest = max(highest, int(existing[len(stem):].split("-")[0]))
        except ValueError:
            continue
    return f"{stem}{highest + 1:03d}"
