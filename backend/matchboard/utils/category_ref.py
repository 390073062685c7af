"""
Category references.

Category identifiers arrive loosely typed: a UUID, a numeric string such as
"1767354643599", or a free-text label such as "U-15 - Male - Singles".
CategoryRef classifies a raw identifier once; resolve_by_label_ladder() is the
single strategy ladder used to pick a stored record for a requested category.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_NUMERIC_RE = re.compile(r"^\d+$")
_GENDER_QUALIFIER_RE = re.compile(r"\s*\((?:male|female|mixed)\)", re.IGNORECASE)
_DASH_SPACING_RE = re.compile(r"\s+-\s*|\s*-\s+")
_LABEL_PLACEHOLDER = "label"


class CategoryKind(str, Enum):
    UUID = "uuid"
    NUMERIC = "numeric"
    LABEL = "label"


def is_uuid(value: Any) -> bool:
    if not value or not isinstance(value, str):
        return False
    return bool(_UUID_RE.match(value.strip()))


@dataclass(frozen=True)
class CategoryRef:
    kind: CategoryKind
    value: str

    @classmethod
    def parse(cls, raw: Any) -> Optional["CategoryRef"]:
        if raw is None:
            return None
        text = str(raw).strip()
        if not text:
            return None
        if _UUID_RE.match(text):
            return cls(CategoryKind.UUID, text)
        if _NUMERIC_RE.match(text):
            return cls(CategoryKind.NUMERIC, text)
        return cls(CategoryKind.LABEL, text)

    @property
    def is_uuid(self) -> bool:
        return self.kind is CategoryKind.UUID

    @property
    def is_label(self) -> bool:
        return self.kind is CategoryKind.LABEL

    @property
    def is_placeholder(self) -> bool:
        """The literal path segment "label" means "no id, look at the label"."""
        return self.is_label and self.value == _LABEL_PLACEHOLDER

    def matches(self, stored: Any) -> bool:
        """Literal comparison against a stored category id (numbers compare by their text)."""
        if stored is None:
            return False
        return str(stored).strip() == self.value

    def __str__(self) -> str:
        return self.value


def normalize_label(label: Any) -> str:
    """Drop (Male)/(Female)/(Mixed) qualifiers, normalize " - " spacing, lowercase."""
    if label is None:
        return ""
    text = _GENDER_QUALIFIER_RE.sub("", str(label))
    text = _DASH_SPACING_RE.sub(" - ", text)
    return " ".join(text.split()).lower().strip()


def base_name(label: Any) -> str:
    """Base category name before the first " - " ("u-15" for "U-15 - Male - Singles")."""
    return normalize_label(label).split(" - ")[0].strip()


class AmbiguousCategoryError(Exception):
    """Raised when a ladder strategy matches more than one record"""

    def __init__(self, strategy: str, candidates: List[Any]):
        super().__init__(f"Category selector is ambiguous under '{strategy}' matching ({len(candidates)} candidates)")
        self.strategy = strategy
        self.candidates = candidates


def _label_strategies(label: str) -> List[Tuple[str, Callable[[str], bool]]]:
    wanted = label.strip()
    wanted_lower = wanted.lower()
    wanted_norm = normalize_label(wanted)
    wanted_base = base_name(wanted)

    def substring(candidate: str) -> bool:
        cand = candidate.strip().lower()
        cand_base = base_name(candidate)
        if wanted_base and cand_base and (wanted_base in cand_base or cand_base in wanted_base):
            return True
        return bool(cand) and (wanted_lower in cand or cand in wanted_lower)

    return [
        ("exact_label", lambda c: c.strip() == wanted),
        ("exact_label_ci", lambda c: c.strip().lower() == wanted_lower),
        ("normalized_label", lambda c: normalize_label(c) == wanted_norm),
        ("base_name", lambda c: bool(wanted_base) and base_name(c) == wanted_base),
        ("substring", substring),
    ]


def resolve_by_label_ladder(
    candidates: Iterable[T],
    category_id: Optional[str],
    category_label: Optional[str],
    get_id: Callable[[T], Any],
    get_label: Callable[[T], Any],
) -> Tuple[Optional[T], Optional[str]]:
    """Pick one candidate using strategies of descending strength.

    Order: exact id -> exact label -> case-insensitive label -> normalized label
    -> base name -> substring containment. The first strategy that yields exactly
    one candidate wins. A strategy yielding several candidates stops the ladder
    with AmbiguousCategoryError, since weaker strategies would only widen the set.

    Returns (candidate, strategy_name) or (None, None).
    """
    pool = list(candidates)
    ref = CategoryRef.parse(category_id)

    if ref is not None and not ref.is_placeholder:
        hits = [c for c in pool if ref.matches(get_id(c))]
        if len(hits) == 1:
            return hits[0], "exact_id"
        if len(hits) > 1:
            raise AmbiguousCategoryError("exact_id", hits)

    label = (category_label or "").strip()
    if not label and ref is not None and ref.is_label and not ref.is_placeholder:
        label = ref.value
    if not label:
        return None, None

    labelled = [(c, str(get_label(c))) for c in pool if get_label(c)]
    for name, predicate in _label_strategies(label):
        hits = [c for c, text in labelled if predicate(text)]
        if len(hits) == 1:
            return hits[0], name
        if len(hits) > 1:
            raise AmbiguousCategoryError(name, hits)

    return None, None
