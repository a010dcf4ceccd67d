"""Period (semester/trimester) tag normalization.

Grades and exams carry free-text period tags written in many ways: "1",
"S1", "semestre1", "1er_semestre", "Premier semestre", "T2",
"2ème trimestre"... Everything is folded to one canonical token such as
"1er_semestre" or "2eme_trimestre" before comparison. Tags that cannot be
parsed are passed through unchanged and only ever match themselves.
"""

import re
import unicodedata
from typing import Any

SEMESTRE = "semestre"
TRIMESTRE = "trimestre"
MAX_PERIODS = 3

_KIND_ALIASES = {
    "s": SEMESTRE,
    "sem": SEMESTRE,
    "semestre": SEMESTRE,
    "semester": SEMESTRE,
    "t": TRIMESTRE,
    "trim": TRIMESTRE,
    "trimestre": TRIMESTRE,
    "trimester": TRIMESTRE,
}

_ORDINAL_WORDS = {
    "premier": 1,
    "premiere": 1,
    "first": 1,
    "deuxieme": 2,
    "second": 2,
    "seconde": 2,
    "troisieme": 3,
    "third": 3,
}

_ORDINAL_LABELS = {1: "PREMIER", 2: "DEUXIEME", 3: "TROISIEME"}

_NUMBER_ONLY = re.compile(r"^(?P<num>\d)$")
_KIND_THEN_NUMBER = re.compile(r"^(?P<kind>[a-z]+?)_?(?P<num>\d)$")
_NUMBER_THEN_KIND = re.compile(r"^(?P<num>\d)(?:er|ere|eme|e|nd|st|th)?_?(?P<kind>[a-z]+)$")
_WORD_THEN_KIND = re.compile(r"^(?P<word>[a-z]+)_(?P<kind>[a-z]+)$")


def _system_kind(system: Any) -> str:
    kind = str(getattr(system, "value", system) or SEMESTRE).lower()
    return kind if kind in (SEMESTRE, TRIMESTRE) else SEMESTRE


def _fold(tag: str) -> str:
    decomposed = unicodedata.normalize("NFKD", tag)
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"[\s_\-/.]+", "_", ascii_only.strip().lower()).strip("_")


def parse_period(tag: Any) -> tuple[int, str | None] | None:
    """Return (index, kind) for a recognized tag, else None.

    ``kind`` is None when the tag does not say whether it is a semester or a
    trimester (e.g. "1").
    """
    if tag is None:
        return None
    folded = _fold(str(tag))
    if not folded:
        return None

    index: int | None = None
    kind: str | None = None

    match = _NUMBER_ONLY.match(folded)
    if match:
        index = int(match.group("num"))
    else:
        for pattern in (_KIND_THEN_NUMBER, _NUMBER_THEN_KIND):
            match = pattern.match(folded)
            if match and match.group("kind") in _KIND_ALIASES:
                index = int(match.group("num"))
                kind = _KIND_ALIASES[match.group("kind")]
                break
        else:
            match = _WORD_THEN_KIND.match(folded)
            if match and match.group("word") in _ORDINAL_WORDS and match.group("kind") in _KIND_ALIASES:
                index = _ORDINAL_WORDS[match.group("word")]
                kind = _KIND_ALIASES[match.group("kind")]

    if index is None or not 1 <= index <= MAX_PERIODS:
        return None
    return index, kind


def period_tag(index: int, system: Any = SEMESTRE) -> str:
    """Canonical tag for a period index, e.g. ``period_tag(2) == "2eme_semestre"``."""
    suffix = "er" if index == 1 else "eme"
    return f"{index}{suffix}_{_system_kind(system)}"


def canonical_period(tag: Any, system: Any = SEMESTRE) -> str | None:
    """Canonical form of ``tag``; None for blank tags, unchanged text when unrecognized."""
    if tag is None or not str(tag).strip():
        return None
    parsed = parse_period(tag)
    if parsed is None:
        return str(tag)
    index, kind = parsed
    return period_tag(index, kind or system)


def matches_period(tag: Any, index: int, system: Any = SEMESTRE, strict: bool = False) -> bool:
    """Whether a record tagged ``tag`` belongs to period ``index``.

    Untagged records match every period unless ``strict`` is set.
    """
    canonical = canonical_period(tag, system)
    if canonical is None:
        return not strict
    return canonical == period_tag(index, system)


def period_count(system: Any = SEMESTRE) -> int:
    return 3 if _system_kind(system) == TRIMESTRE else 2


def period_label(index: int, system: Any = SEMESTRE) -> str:
    """Bulletin heading for a period, e.g. "DEUXIEME TRIMESTRE"."""
    ordinal = _ORDINAL_LABELS.get(index, str(index))
    return f"{ordinal} {_system_kind(system).upper()}"
