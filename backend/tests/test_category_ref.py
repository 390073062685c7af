"""Category reference parsing and the shared label ladder."""
from types import SimpleNamespace

import pytest

from matchboard.utils.category_ref import (
    AmbiguousCategoryError,
    CategoryKind,
    CategoryRef,
    base_name,
    normalize_label,
    resolve_by_label_ladder,
)


def _rec(cid, label):
    return SimpleNamespace(category_id=cid, category_label=label)


def _resolve(pool, category_id, label=None):
    return resolve_by_label_ladder(
        pool, category_id, label, get_id=lambda r: r.category_id, get_label=lambda r: r.category_label
    )


@pytest.mark.parametrize(
    "raw, kind",
    [
        ("3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b", CategoryKind.UUID),
        ("3F2B8C1E-9A4D-4E6F-8B7A-1C2D3E4F5A6B", CategoryKind.UUID),
        ("1767354643599", CategoryKind.NUMERIC),
        (42, CategoryKind.NUMERIC),
        ("U-15 - Male - Singles", CategoryKind.LABEL),
    ],
)
def test_parse_kinds(raw, kind):
    assert CategoryRef.parse(raw).kind is kind


def test_parse_blank_is_none():
    assert CategoryRef.parse(None) is None
    assert CategoryRef.parse("   ") is None


def test_label_placeholder():
    assert CategoryRef.parse("label").is_placeholder
    assert not CategoryRef.parse("Label Cup").is_placeholder


def test_matches_is_literal():
    ref = CategoryRef.parse("42")
    assert ref.matches("42")
    assert ref.matches(42)
    assert not ref.matches("042")
    assert not ref.matches(None)


def test_normalize_label_strips_gender_and_dash_spacing():
    assert normalize_label("U-15 (Male)  -Singles") == "u-15 - singles"
    assert normalize_label("Open (Mixed) - Doubles") == "open - doubles"
    # unspaced dashes belong to the name
    assert normalize_label("U-15") == "u-15"


def test_base_name():
    assert base_name("U-15 - Male - Singles") == "u-15"
    assert base_name("Open") == "open"


def test_ladder_prefers_exact_id():
    pool = [_rec("42", "Open League"), _rec("7", "Open League B")]
    found, strategy = _resolve(pool, "42", "Open League B")
    assert found.category_id == "42"
    assert strategy == "exact_id"


def test_ladder_label_strategies_in_order():
    pool = [_rec(None, "U-15 - Male - Singles"), _rec(None, "U-17 - Male - Singles")]
    assert _resolve(pool, "label", "U-15 - Male - Singles")[1] == "exact_label"
    assert _resolve(pool, "label", "u-15 - male - singles")[1] == "exact_label_ci"
    assert _resolve(pool, "label", "U-15 (Male) - Male - Singles")[1] == "normalized_label"
    assert _resolve(pool, "label", "U-17 - Female - Doubles")[1] == "base_name"


def test_ladder_substring():
    pool = [_rec(None, "Under 19 Boys Singles"), _rec(None, "Veterans")]
    found, strategy = _resolve(pool, None, "19 Boys")
    assert found.category_label == "Under 19 Boys Singles"
    assert strategy == "substring"


def test_ladder_uses_label_shaped_id_as_label():
    pool = [_rec(None, "U-15 - Male - Singles")]
    found, strategy = _resolve(pool, "U-15 - Male - Singles")
    assert found is pool[0]
    assert strategy == "exact_label"


def test_ladder_ambiguity_raises():
    pool = [_rec(None, "U-15 - Male - Singles"), _rec(None, "U-15 - Female - Singles")]
    with pytest.raises(AmbiguousCategoryError) as exc:
        _resolve(pool, "label", "U-15")
    assert exc.value.strategy == "base_name"
    assert len(exc.value.candidates) == 2


def test_ladder_not_found():
    pool = [_rec("1", "Open")]
    assert _resolve(pool, "99", None) == (None, None)
    assert _resolve(pool, "label", "Veterans") == (None, None)
