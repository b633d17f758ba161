"""
backend/app/services/team_name_normalizer.py

Purpose:
    Clean provider team names into ASCII-friendly display names for the match
    pool. Case is preserved: "Başakşehir" -> "Basaksehir".

Dependencies:
    - unicodedata
"""

from __future__ import annotations

import unicodedata

# Applied before NFKD: dotless "ı" has no decomposition.
_TURKISH_MAP = str.maketrans({
    "ç": "c", "Ç": "C",
    "ğ": "g", "Ğ": "G",
    "ı": "i", "İ": "I",
    "ö": "o", "Ö": "O",
    "ş": "s", "Ş": "S",
    "ü": "u", "Ü": "U",
})


def clean_team_name(raw: str) -> str:
    """
    Normalize a team name for display.

    Steps:
        1. explicit Turkish character map
        2. NFKD decomposition, combining accents dropped (é -> e, ñ -> n)
        3. trim

    Letters without an accent decomposition (e.g. Cyrillic) are kept as-is.
    """
    text = str(raw or "").translate(_TURKISH_MAP)
    decomposed = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return unicodedata.normalize("NFC", text).strip()
