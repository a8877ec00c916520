# engine/catalogue.py
"""
Liste des tests côté admin : recherche, filtre de statut, tri.
Fonctions pures sur des Test déjà chargés par le repository.
"""
from __future__ import annotations
import re
import unicodedata
from datetime import datetime, timezone
from typing import Iterable, List

from quizlab.engine.definition.model import Test
from quizlab.shared.enums import CatalogueSort, CatalogueStatus

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _matches_search(test: Test, needle: str) -> bool:
    if not needle:
        return True
    haystack = (test.title, test.description, test.slug)
    return any(needle in (field or "").lower() for field in haystack)


def _matches_status(test: Test, status: CatalogueStatus) -> bool:
    if status == CatalogueStatus.PUBLISHED:
        return test.is_published
    if status == CatalogueStatus.DRAFT:
        return not test.is_published
    return True


def _created_key(test: Test) -> datetime:
    created = test.created_at or _EPOCH
    # Les dates naïves sont considérées UTC pour rester comparables
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


def filter_tests(
    tests: Iterable[Test],
    search: str = "",
    status: CatalogueStatus = CatalogueStatus.ALL,
    sort_by: CatalogueSort = CatalogueSort.CREATED_AT,
    descending: bool = True,
) -> List[Test]:
    needle = search.strip().lower()
    selected = [t for t in tests if _matches_search(t, needle) and _matches_status(t, status)]

    if sort_by == CatalogueSort.TITLE:
        key = lambda t: t.title.lower()
    else:
        key = _created_key
    return sorted(selected, key=key, reverse=descending)


def slugify(title: str) -> str:
    """Suggestion de slug kebab-case : "Test MBTI Été" → "test-mbti-ete"."""
    ascii_title = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_title.lower()).strip("-")
