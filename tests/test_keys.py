"""Tests for the resource key namespace."""

import re

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from softlock.core.keys import (
    is_item_key,
    item_key,
    lock_filename,
    normalize_item_path,
    parse_resource_key,
    settings_key,
)
from softlock.errors import ResourceKeyError


class TestItemKey:
    """Tests for item_key and normalize_item_path."""

    def test_prefixes_relative_path(self) -> None:
        assert item_key("vacation/IMG_0001.jpg") == "photo:vacation/IMG_0001.jpg"

    @pytest.mark.parametrize(
        "path",
        [
            "./vacation/IMG_0001.jpg",
            "/vacation/IMG_0001.jpg",
            "vacation\\IMG_0001.jpg",
            "vacation//IMG_0001.jpg",
        ],
    )
    def test_equivalent_spellings_share_a_key(self, path: str) -> None:
        """Separator and prefix variants map to one key."""
        assert item_key(path) == "photo:vacation/IMG_0001.jpg"

    def test_unicode_is_nfc_normalized(self) -> None:
        """Decomposed and composed accents (macOS vs Windows) are the same item."""
        decomposed = "Cafe\u0301/IMG.jpg"
        composed = "Caf\u00e9/IMG.jpg"
        assert decomposed != composed
        assert item_key(decomposed) == item_key(composed)

    @pytest.mark.parametrize("path", ["", "/", "./", "\\\\"])
    def test_empty_path_rejected(self, path: str) -> None:
        with pytest.raises(ResourceKeyError):
            normalize_item_path(path)

    def test_families_are_disjoint(self) -> None:
        """An item literally named 'settings' is not the settings key."""
        assert item_key("settings") != settings_key()
        assert is_item_key(item_key("settings"))
        assert not is_item_key(settings_key())


class TestParseResourceKey:
    """Tests for parse_resource_key."""

    def test_settings(self) -> None:
        assert parse_resource_key(" settings ") == "settings"

    def test_item_key_is_normalized(self) -> None:
        assert parse_resource_key("photo:./a\\b.jpg") == "photo:a/b.jpg"

    @pytest.mark.parametrize("text", ["", "Settings", "people:alice", "photo:"])
    def test_unknown_or_empty_rejected(self, text: str) -> None:
        with pytest.raises(ResourceKeyError):
            parse_resource_key(text)


class TestLockFilename:
    """Tests for the key-to-filename mapping."""

    def test_filename_is_flat_and_safe(self) -> None:
        name = lock_filename("photo:vacation/ünïcode/IMG 0001.jpg")
        assert re.fullmatch(r"lock_[0-9a-f]{64}\.json", name)

    def test_stable_across_calls(self) -> None:
        assert lock_filename("settings") == lock_filename("settings")

    @given(st.text(min_size=1), st.text(min_size=1))
    @settings(max_examples=200)
    def test_distinct_keys_get_distinct_filenames(self, a: str, b: str) -> None:
        """Distinct keys never share a lock file."""
        if a != b:
            assert lock_filename(a) != lock_filename(b)

    @given(st.text(min_size=1).filter(lambda s: normalize_item_path_ok(s)))
    @settings(max_examples=100)
    def test_item_filenames_never_contain_separators(self, path: str) -> None:
        name = lock_filename(item_key(path))
        assert "/" not in name
        assert "\\" not in name


def normalize_item_path_ok(path: str) -> bool:
    try:
        normalize_item_path(path)
    except ResourceKeyError:
        return False
    return True
