"""Tests for version parsing, ordering and pre-release detection."""

import pytest

from depman.domain.models import DiffType
from depman.domain.versions import (
    compare_versions,
    compute_diff,
    is_stable_version,
    parse_version,
    sort_versions_desc,
)


class TestParseVersion:
    def test_plain_triplet(self):
        assert parse_version("1.2.3") == [1, 2, 3]

    def test_short_versions_are_padded(self):
        assert parse_version("2") == [2, 0, 0]
        assert parse_version("2.1") == [2, 1, 0]

    def test_leading_v_is_ignored(self):
        assert parse_version("v1.4.0") == [1, 4, 0]

    def test_suffix_is_cut(self):
        assert parse_version("1.0.0rc1") == [1, 0, 0]

    def test_non_numeric_is_none(self):
        assert parse_version("") is None
        assert parse_version("abc") is None


class TestComputeDiff:
    @pytest.mark.parametrize(
        "current, latest, expected",
        [
            ("1.0.0", "2.0.0", DiffType.MAJOR),
            ("1.0.0", "1.1.0", DiffType.MINOR),
            ("1.0.0", "1.0.1", DiffType.PATCH),
            ("1.0.0", "1.0.0", DiffType.NONE),
            ("1.0", "1.0.0", DiffType.NONE),
            ("garbage", "1.0.0", DiffType.UNKNOWN),
        ],
    )
    def test_classification(self, current, latest, expected):
        assert compute_diff(current, latest) is expected


class TestStableVersions:
    @pytest.mark.parametrize("version", ["1.0.0", "2.31.0", "2024.1", "0.9"])
    def test_stable(self, version):
        assert is_stable_version(version)

    @pytest.mark.parametrize(
        "version", ["3.0.0rc1", "1.0a1", "2.0.0b2", "1.0.0.dev3", "1.0.post1", "1.0-beta", "1.0.0-alpha.1"]
    )
    def test_pre_releases(self, version):
        assert not is_stable_version(version)


class TestOrdering:
    def test_compare_treats_missing_components_as_zero(self):
        assert compare_versions("1.0", "1.0.0") == 0
        assert compare_versions("1.10.0", "1.9.0") > 0
        assert compare_versions("v2.0.0", "10.0.0") < 0

    def test_sort_descending(self):
        versions = ["1.0.0", "2.0.1", "10.0.0", "2.0.0", "2.0"]
        assert sort_versions_desc(versions)[:3] == ["10.0.0", "2.0.1", "2.0.0"]
