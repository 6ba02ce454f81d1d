"""Tests for ID generation."""

import time

import pytest

from uiforge.core.id import (
    Prefix,
    extract_timestamp,
    generate_raw,
    is_valid,
    new_request_id,
    new_version_id,
)


class TestGeneration:
    """Test basic ID generation."""

    def test_generate_unique_ids(self):
        """IDs should be unique."""
        id1 = generate_raw()
        id2 = generate_raw()

        assert id1 != id2
        assert len(id1) == 26

    def test_timestamps_non_decreasing(self):
        """Later IDs never carry an earlier timestamp."""
        ids = []
        for _ in range(3):
            ids.append(generate_raw())
            time.sleep(0.002)

        timestamps = [extract_timestamp(id_str) for id_str in ids]
        assert timestamps == sorted(timestamps)


class TestTypedGeneration:
    """Test typed ID generation."""

    def test_request_id_format(self):
        id_str = new_request_id()
        assert id_str.startswith("req_")
        assert id_str.split("_")[0] == Prefix.REQUEST
        assert is_valid(id_str)

    def test_version_id_format(self):
        id_str = new_version_id()
        assert id_str.startswith("ver_")
        assert id_str.split("_")[0] == Prefix.VERSION
        assert is_valid(id_str)


class TestValidation:
    """Test ID validation helpers."""

    @pytest.mark.parametrize("value", ["", "ver_", "not-a-ulid", "ver_123", "!" * 26])
    def test_invalid_ids(self, value):
        assert not is_valid(value)

    def test_timestamp_of_invalid_id(self):
        assert extract_timestamp("nope") is None

    def test_timestamp_ignores_prefix(self):
        raw = generate_raw()
        assert extract_timestamp(f"ver_{raw}") == extract_timestamp(raw)
