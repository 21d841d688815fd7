"""Answer normalization used for the exact-match check before the judge is consulted."""

import re
import unicodedata
from typing import Optional

_SEPARATOR = " "
_SEPARATOR_RUNS = re.compile(r" +")


def _is_separator(char: str) -> bool:
    # Whitespace, punctuation (P*) and symbols (S*) all collapse to one space
    return char.isspace() or unicodedata.category(char)[0] in ("P", "S")


def normalize_answer(value: Optional[str]) -> str:
    """Lowercase, strip diacritics and collapse punctuation/whitespace runs.

    "  L'Été, c'est   FINI ! " -> "l ete c est fini"
    """
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", value.lower())
    chars = []
    for char in decomposed:
        if unicodedata.combining(char):
            continue
        chars.append(_SEPARATOR if _is_separator(char) else char)
    return _SEPARATOR_RUNS.sub(_SEPARATOR, "".join(chars)).strip()


def answers_match(user_answer: Optional[str], expected_answer: Optional[str]) -> bool:
    """True when both answers normalize to the same non-empty string."""
    normalized_user = normalize_answer(user_answer)
    return len(normalized_user) > 0 and normalized_user == normalize_answer(expected_answer)
