"""Tests for cargo_gc/artifact_index.py."""

from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import pytest

from cargo_gc.artifact_index import (
    ArtifactIndex,
    Freshness,
    FreshnessState,
    IndexSummary,
    list_artifacts,
)
from cargo_gc.fs_utils import IndexScanError
from cargo_gc.naming import Identifier
from tests.assertions import assert_equal
from tests.profile_tree_test_utils import BASE_MTIME_NS


def _scanned(profile_tree) -> ArtifactIndex:
    index = ArtifactIndex()
    index.scan(profile_tree.root)
    return index


def _assert_consistent(summary: IndexSummary) -> None:
    assert_equal(summary.fresh_with_deps + summary.fresh_without_deps, summary.fresh_count)
    assert_equal(summary.dirty_with_deps + summary.dirty_without_deps, summary.dirty_count)
    assert_equal(summary.unknown_with_deps + summary.unknown_without_deps, summary.unknown_count)
    assert summary.deps_without_fingerprints <= summary.total_deps_items


class TestListArtifacts:
    """Tests for list_artifacts."""

    def test_missing_deps_dir_is_empty(self, tmp_path):
        """A profile without deps/ yields no records."""
        assert_equal(list_artifacts(tmp_path / "deps"), [])

    def test_records_carry_identifier_extension_and_size(self, profile_tree):
        """Files are parsed from their stem and sized from stat."""
        profile_tree.dep("libserde-1a2b.rlib", size=7)
        (record,) = list_artifacts(profile_tree.deps_dir)
        assert_equal(record.identifier, Identifier("libserde", "1a2b"))
        assert_equal(record.extension, "rlib")
        assert_equal(record.size_bytes, 7)
        assert record.path.is_absolute()
        assert not record.is_dir

    def test_dep_info_flag(self, profile_tree):
        """The .d side file is flagged as dependency info."""
        profile_tree.dep("libserde-1a2b.d")
        (record,) = list_artifacts(profile_tree.deps_dir)
        assert record.is_dep_info

    def test_directory_entries_are_sized_recursively(self, profile_tree):
        """A directory artifact reports the size of everything below it."""
        bundle = profile_tree.deps_dir / "app-77.dSYM"
        (bundle / "Contents" / "Resources").mkdir(parents=True)
        (bundle / "Contents" / "Info.plist").write_bytes(b"x" * 5)
        (bundle / "Contents" / "Resources" / "DWARF").write_bytes(b"x" * 11)
        (record,) = list_artifacts(profile_tree.deps_dir)
        assert record.is_dir
        assert_equal(record.size_bytes, 16)

    def test_unparseable_entries_are_skipped(self, profile_tree):
        """Housekeeping files without a hash are not artifacts."""
        profile_tree.dep("libfoo.rlib")
        profile_tree.dep("libfoo-9.rlib")
        records = list_artifacts(profile_tree.deps_dir)
        assert_equal([r.identifier for r in records], [Identifier("libfoo", "9")])

    def test_unreadable_dir_raises(self, profile_tree):
        """Listing failures are fatal for the tree."""
        profile_tree.dep("libfoo-9.rlib")
        with patch("cargo_gc.fs_utils.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(IndexScanError, match="denied"):
                list_artifacts(profile_tree.deps_dir)

    def test_unreadable_entry_metadata_raises(self, profile_tree):
        """A single entry that cannot be stat'd aborts the listing."""
        profile_tree.dep("libfoo-9.rlib")
        entry = MagicMock()
        entry.name = "libfoo-9.rlib"
        entry.stat.side_effect = OSError("eio")
        with patch("cargo_gc.artifact_index.list_dir", return_value=[entry]):
            with pytest.raises(IndexScanError, match="failed to get metadata"):
                list_artifacts(profile_tree.deps_dir)

    def test_unreadable_file_inside_directory_entry_raises(self, profile_tree):
        """Sizing a directory entry fails when one file below it cannot be stat'd."""
        bundle = profile_tree.deps_dir / "app-1.dSYM"
        bundle.mkdir(parents=True)
        broken = bundle / "x"
        broken.write_bytes(b"x")
        real_lstat = os.lstat
        broken_path = str(broken.resolve())

        def failing_lstat(path, *args, **kwargs):
            if os.fspath(path) == broken_path:
                raise OSError("eio")
            return real_lstat(path, *args, **kwargs)

        with patch("cargo_gc.fs_utils.os.lstat", side_effect=failing_lstat):
            with pytest.raises(IndexScanError, match="failed to stat"):
                list_artifacts(profile_tree.deps_dir)

    def test_unwalkable_directory_entry_raises(self, profile_tree):
        """A directory entry whose subtree cannot be listed is fatal."""
        (profile_tree.deps_dir / "app-1.dSYM").mkdir(parents=True)
        real_scandir = os.scandir

        def failing_scandir(path=".", *args):
            if os.fspath(path).endswith("app-1.dSYM"):
                raise PermissionError("denied")
            return real_scandir(path, *args)

        with patch("cargo_gc.fs_utils.os.scandir", side_effect=failing_scandir):
            with pytest.raises(IndexScanError, match="failed to walk"):
                list_artifacts(profile_tree.deps_dir)


class TestScan:
    """Tests for ArtifactIndex.scan and lookups."""

    def test_empty_profile(self, profile_tree):
        """Missing subtrees give empty views, not errors."""
        index = _scanned(profile_tree)
        assert_equal(index.summary(), IndexSummary())
        assert_equal(index.artifacts, ())

    def test_names_are_normalized(self, profile_tree):
        """Fingerprint lookups accept either spelling."""
        profile_tree.fingerprint("git2-curl-abc")
        index = _scanned(profile_tree)
        assert index.has_package("git2-curl")
        assert index.has_package("git2_curl")
        assert_equal(index.get_freshness("git2-curl", "abc"), Freshness.unknown())
        assert_equal(index.fingerprint_identifiers(), [Identifier("git2_curl", "abc")])

    def test_deps_info_is_aggregated_per_identifier(self, profile_tree):
        """All files of one identifier add up."""
        profile_tree.dep("libfoo-1.rlib", size=3)
        profile_tree.dep("libfoo-1.rmeta", size=2)
        profile_tree.dep("libfoo-1.d", size=1)
        profile_tree.dep("libfoo-2.rlib", size=10)
        index = _scanned(profile_tree)
        assert_equal(index.get_deps_info("libfoo", "1").size_bytes, 6)
        assert_equal(index.get_deps_info("libfoo", "2").size_bytes, 10)
        assert index.get_deps_info("libfoo", "3") is None
        assert_equal(len(index.artifacts), 4)

    def test_rescan_clears_previous_state(self, profile_tree, tmp_path):
        """A second scan does not accumulate entries."""
        profile_tree.fingerprint("foo-1")
        index = _scanned(profile_tree)
        index.scan(tmp_path / "elsewhere")
        assert not index.has_package("foo")

    def test_unreadable_fingerprint_tree_raises(self, profile_tree):
        """Scan I/O errors propagate."""
        profile_tree.fingerprint("foo-1")
        with patch("cargo_gc.fs_utils.os.scandir", side_effect=OSError("io")):
            with pytest.raises(IndexScanError):
                ArtifactIndex().scan(profile_tree.root)


class TestFreshness:
    """Tests for freshness annotation."""

    def test_update_known_fingerprint(self, profile_tree):
        """Annotations are stored against the normalized name."""
        profile_tree.fingerprint("git2-curl-abc")
        index = _scanned(profile_tree)
        index.update_freshness("git2_curl", "abc", Freshness.dirty("rustflags changed"))
        freshness = index.get_freshness("git2-curl", "abc")
        assert_equal(freshness.state, FreshnessState.DIRTY)
        assert_equal(freshness.reason, "rustflags changed")

    def test_update_unknown_fingerprint_is_noop(self, profile_tree):
        """Annotation never creates entries."""
        index = _scanned(profile_tree)
        index.update_freshness("ghost", "123", Freshness.fresh())
        assert index.get_freshness("ghost", "123") is None
        assert not index.has_package("ghost")

    def test_update_is_idempotent(self, profile_tree):
        """Applying the same annotation twice changes nothing."""
        profile_tree.fingerprint("foo-1")
        index = _scanned(profile_tree)
        index.update_freshness("foo", "1", Freshness.fresh())
        index.update_freshness("foo", "1", Freshness.fresh())
        assert_equal(index.summary().fresh_count, 1)


class TestReport:
    """Tests for the correspondence report."""

    def test_cross_tabulation(self, profile_tree):
        """Counts split by freshness and by matching deps identity."""
        profile_tree.fingerprint("foo-1")
        profile_tree.fingerprint("foo-2")
        profile_tree.fingerprint("bar-baz-3")
        profile_tree.fingerprint("qux-4")
        profile_tree.dep("foo-1.rlib")
        profile_tree.dep("bar_baz-3.rlib")
        profile_tree.dep("bar_baz-3.d")
        profile_tree.dep("orphan-5.rlib")
        profile_tree.dep("foo-9.rlib")
        index = _scanned(profile_tree)
        index.update_freshness("foo", "1", Freshness.fresh())
        index.update_freshness("foo", "2", Freshness.dirty("stale"))

        summary = index.summary()
        assert_equal(summary.fresh_with_deps, 1)
        assert_equal(summary.fresh_without_deps, 0)
        assert_equal(summary.dirty_with_deps, 0)
        assert_equal(summary.dirty_without_deps, 1)
        assert_equal(summary.unknown_with_deps, 1)
        assert_equal(summary.unknown_without_deps, 1)
        assert_equal(summary.total_deps_items, 4)
        assert_equal(summary.deps_without_fingerprints, 2)
        _assert_consistent(summary)

    def test_same_name_different_hash_does_not_correspond(self, profile_tree):
        """Correspondence needs both name and hash."""
        profile_tree.fingerprint("foo-1")
        profile_tree.dep("foo-2.rlib")
        summary = _scanned(profile_tree).summary()
        assert_equal(summary.unknown_without_deps, 1)
        assert_equal(summary.deps_without_fingerprints, 1)

    def test_report_text(self, profile_tree):
        """The rendered report names every bucket."""
        profile_tree.fingerprint("foo-1")
        profile_tree.dep("foo-1.rlib")
        text = _scanned(profile_tree).report()
        assert "Fingerprint summary:" in text
        assert "unknown: 1 (1 with deps, 0 without deps)" in text
        assert "Deps items: 1 total, 0 without fingerprints" in text


class TestLoadIncremental:
    """ArtifactIndex.load_incremental delegates to the session reducer."""

    def test_returns_canonical_superseded_paths(self, profile_tree):
        """Only the older session is returned."""
        old = profile_tree.incremental("foo-1", BASE_MTIME_NS)
        profile_tree.incremental("foo-2", BASE_MTIME_NS + 10**9)
        assert_equal(
            ArtifactIndex().load_incremental(profile_tree.root), {str(old.resolve())}
        )
