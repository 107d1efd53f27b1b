"""
API Helper Tests

Tag conversions, lenient JSON decoding, JWT and bcrypt helpers.

Run with: pytest tests/test_utils.py -v
"""

import pytest
from jose import jwt

from dxcases.api.utils import (
    check_password,
    create_access_token,
    extract_unique_tags,
    hash_password,
    lc_text_from_content,
    normalize_tags,
    parse_llm_json,
    parse_tags,
    verify_token,
)


# =============================================================================
# TAGS
# =============================================================================

def test_parse_tags_from_json_text():
    assert parse_tags('["DX", "移行"]') == ["DX", "移行"]


def test_parse_tags_tolerates_bad_values():
    assert parse_tags(None) == []
    assert parse_tags("") == []
    assert parse_tags("not json") == []
    assert parse_tags('{"a": 1}') == []


def test_parse_tags_accepts_lists():
    assert parse_tags(["a", 1]) == ["a", "1"]


def test_normalize_tags_splits_comma_strings():
    assert normalize_tags(" DX , 移行,, ") == ["DX", "移行"]


def test_normalize_tags_cleans_lists():
    assert normalize_tags(["  a", "", "b "]) == ["a", "b"]
    assert normalize_tags(None) == []


def test_extract_unique_tags_is_sorted_and_deduplicated():
    assert extract_unique_tags(['["b", "a"]', '["a", "c"]', None, "broken"]) == ["a", "b", "c"]


# =============================================================================
# LLM OUTPUT
# =============================================================================

def test_lc_text_from_content_parts():
    content = [{"type": "text", "text": "こんにちは"}, {"type": "image_url", "image_url": {}}, {"type": "text", "text": "!"}]
    assert lc_text_from_content(content) == "こんにちは!"
    assert lc_text_from_content(None) == ""


def test_parse_llm_json_plain_and_fenced():
    assert parse_llm_json('{"title": "T"}') == {"title": "T"}
    assert parse_llm_json('```json\n{"title": "T"}\n```') == {"title": "T"}


def test_parse_llm_json_repairs_trailing_comma():
    assert parse_llm_json('{"title": "T", "tags": ["a", "b",],}') == {"title": "T", "tags": ["a", "b"]}


def test_parse_llm_json_rejects_non_objects():
    with pytest.raises(ValueError):
        parse_llm_json('["a", "b"]')


# =============================================================================
# AUTH
# =============================================================================

def test_token_round_trip():
    token = create_access_token({"sub": "admin"})
    assert verify_token(token) == "admin"


def test_foreign_token_is_rejected():
    token = jwt.encode({"sub": "admin"}, "another-secret", algorithm="HS256")
    assert verify_token(token) is None
    assert verify_token("garbage") is None


def test_password_hashing():
    hashed = hash_password("s3cret")
    assert check_password("s3cret", hashed)
    assert not check_password("wrong", hashed)


def test_malformed_hash_does_not_match():
    assert check_password("s3cret", "not-a-bcrypt-hash") is False
