"""
backend/tests/test_team_name_normalizer.py

Purpose:
    Team name cleanup for the match pool: Turkish map, accent stripping,
    case preservation.
"""

import pytest

from app.services.team_name_normalizer import clean_team_name


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Göztepe", "Goztepe"),
        ("Başakşehir", "Basaksehir"),
        ("Fenerbahçe", "Fenerbahce"),
        ("Kasımpaşa", "Kasimpasa"),
        ("İstanbulspor", "Istanbulspor"),
        ("ÇAYKUR RİZESPOR", "CAYKUR RIZESPOR"),
        ("Gençlerbirliği", "Genclerbirligi"),
        ("Bayern München", "Bayern Munchen"),
        ("Atlético Madrid", "Atletico Madrid"),
    ],
)
def test_clean_team_name_strips_diacritics_and_keeps_case(raw, expected):
    assert clean_team_name(raw) == expected


def test_clean_team_name_trims_and_keeps_non_latin_letters():
    assert clean_team_name("  Galatasaray ") == "Galatasaray"
    assert clean_team_name("Спартак") == "Спартак"
    assert clean_team_name("") == ""
    assert clean_team_name(None) == ""
