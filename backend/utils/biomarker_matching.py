"""Biomarker name resolution against the standards catalog.

A free-text name such as ``"hba1c"`` is expanded into every code, display
name and alias of each standard it overlaps with, so a lab that printed
``"A1c"`` and a query for ``"Hemoglobin A1c"`` meet in the middle.

Overlap is plain bidirectional substring containment.  Short codes can
over-match (``"t3"`` lives inside ``"ft3"``); callers go through the
``BiomarkerMatcher`` protocol so a token or edit-distance matcher can be
swapped in without touching them.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from services.health_records import BiomarkerStandardRecord


@runtime_checkable
class BiomarkerMatcher(Protocol):
    def resolve(self, raw_name: str) -> set[str]:
        ...

    def matches(self, measurement_name: str, terms: set[str]) -> bool:
        ...


def normalize_biomarker_name(raw: str | None) -> str:
    return str(raw or "").strip().lower()


def _overlaps(a: str, b: str) -> bool:
    return a in b or b in a


class SubstringBiomarkerMatcher:
    def __init__(self, standards: Iterable[BiomarkerStandardRecord]):
        self._term_groups: list[frozenset[str]] = []
        for std in standards:
            candidates = {normalize_biomarker_name(std.code), normalize_biomarker_name(std.name)}
            candidates.update(normalize_biomarker_name(alias) for alias in std.aliases)
            candidates.discard("")
            if candidates:
                self._term_groups.append(frozenset(candidates))

    def resolve(self, raw_name: str) -> set[str]:
        q = normalize_biomarker_name(raw_name)
        terms = {q}
        if not q:
            return terms
        for group in self._term_groups:
            if any(_overlaps(candidate, q) for candidate in group):
                terms.update(group)
        return terms

    def matches(self, measurement_name: str, terms: set[str]) -> bool:
        name = normalize_biomarker_name(measurement_name)
        if not name:
            return False
        return any(term and _overlaps(name, term) for term in terms)
