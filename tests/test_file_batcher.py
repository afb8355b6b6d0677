"""Tests for file collection, prioritisation and token-aware batching."""

import logging
import os
from pathlib import Path

import pytest

from monoindex.config import AnalysisConfig
from monoindex.errors import AnalysisError
from monoindex.file_batcher import FileBatcher, pack_batches, sort_by_priority
from monoindex.models import FileRecord, WorkspacePackage, estimate_tokens
from monoindex.package_detector import PackageDetector
from monoindex.priority import PriorityPolicy


def _record(name: str, size: int, priority: float = 10) -> FileRecord:
    return FileRecord(path=Path(name), size_bytes=size, priority=priority)


def _package(root: Path, name: str = "pkg", priority: float = 100) -> WorkspacePackage:
    return WorkspacePackage(name=name, root_path=root, kind="packages", priority=priority)


class TestPackBatches:
    """Greedy bin-packing."""

    def test_small_large_oversized_scenario(self, caplog):
        """250 + 500 overflows 700, and the 1100-token file stands alone."""
        files = [_record("a.py", 1000), _record("b.py", 2000), _record("c.py", 4400)]
        assert [estimate_tokens(f.size_bytes) for f in files] == [250, 500, 1100]

        with caplog.at_level(logging.WARNING, logger="monoindex.file_batcher"):
            batches = pack_batches(files, 700)

        assert [[f.path.name for f in b.files] for b in batches] == [["a.py"], ["b.py"], ["c.py"]]
        assert [b.estimated_tokens for b in batches] == [250, 500, 1100]
        assert [b.id for b in batches] == [0, 1, 2]
        assert any("c.py" in r.getMessage() for r in caplog.records)

    def test_files_are_grouped_until_limit(self):
        files = [_record(f"f{i}.py", 400) for i in range(5)]  # 100 tokens each
        batches = pack_batches(files, 250)
        assert [len(b) for b in batches] == [2, 2, 1]
        assert all(b.estimated_tokens <= 250 for b in batches)

    def test_oversized_file_does_not_flush_accumulator(self):
        files = [_record("a.py", 400), _record("huge.py", 40000), _record("b.py", 400)]
        batches = pack_batches(files, 300)
        contents = sorted(tuple(f.path.name for f in b.files) for b in batches)
        assert contents == [("a.py", "b.py"), ("huge.py",)]
        singleton = next(b for b in batches if b.files[0].path.name == "huge.py")
        assert singleton.id == 0

    def test_batches_sorted_by_priority_with_creation_ids(self):
        files = [
            _record("low1.py", 400, priority=5),
            _record("high.py", 40000, priority=50),
            _record("low2.py", 400, priority=5),
        ]
        batches = pack_batches(files, 150)
        assert [b.priority for b in batches] == [50, 5, 5]
        assert batches[0].id == 0
        assert [b.id for b in batches[1:]] == [1, 2]

    def test_batch_priority_is_max_of_members(self):
        files = [_record("a.py", 40, priority=3), _record("b.py", 40, priority=9)]
        (batch,) = pack_batches(files, 1000)
        assert batch.priority == 9

    def test_every_file_lands_in_exactly_one_batch(self):
        sizes = [10, 4000, 123, 999, 50000, 7, 3200, 3201, 1, 0]
        files = [_record(f"f{i}.py", s, priority=i % 3) for i, s in enumerate(sizes)]
        limit = 1000
        batches = pack_batches(sort_by_priority(files), limit)

        seen = [f for b in batches for f in b.files]
        assert sorted(seen, key=lambda f: f.path.name) == sorted(files, key=lambda f: f.path.name)
        for b in batches:
            total = sum(estimate_tokens(f.size_bytes) for f in b.files)
            assert total == b.estimated_tokens
            assert total <= limit or (len(b) == 1 and total > limit)

    def test_empty_input(self):
        assert pack_batches([], 100) == []

    def test_non_positive_limit_rejected(self):
        with pytest.raises(ValueError):
            pack_batches([_record("a.py", 10)], 0)


def test_sort_by_priority_is_stable():
    files = [_record("a.py", 1, 5), _record("b.py", 1, 9), _record("c.py", 1, 5)]
    assert [f.path.name for f in sort_by_priority(files)] == ["b.py", "a.py", "c.py"]


class TestFilePriority:
    """Keyword scoring of individual files."""

    def test_name_and_directory_buckets(self):
        policy = PriorityPolicy()
        assert policy.file_priority(Path("pkg/src/main.py"), 100) == 100 + 20 + 10
        assert policy.file_priority(Path("pkg/api/client.py"), 0) == 15 + 15
        assert policy.file_priority(Path("pkg/models/schema.py"), 0) == 15 + 15
        assert policy.file_priority(Path("pkg/x/plain.py"), 0) == 0

    def test_test_files_are_penalised(self):
        policy = PriorityPolicy()
        assert policy.file_priority(Path("pkg/x/test_plain.py"), 100) == 50

    def test_matching_is_case_insensitive(self):
        policy = PriorityPolicy()
        assert policy.file_priority(Path("pkg/Services/UserService.py"), 0) == 15 + 15


class TestCollectFiles:
    """Walking package trees."""

    def test_collect_respects_include_and_exclude(self, make_tree):
        root = make_tree({
            "pkg/src/app/main.py": "x = 1\n",
            "pkg/src/app/util.py": "y = 2\n",
            "pkg/src/app/notes.txt": "text\n",
            "pkg/tests/test_main.py": "def test(): pass\n",
            "pkg/.venv/lib/site.py": "z = 3\n",
        }) / "pkg"
        records = FileBatcher().collect_files(
            [_package(root)], ["**/*.py"], ["**/tests/**", "**/.venv/**"]
        )
        assert sorted(r.path.name for r in records) == ["main.py", "util.py"]
        assert all(r.package == "pkg" for r in records)

    def test_nested_packages_collect_each_file_once(self, make_tree):
        base = make_tree({
            "top.py": "a = 1\n",
            "packages/inner/mod.py": "b = 2\n",
        })
        outer = _package(base, "root", 200)
        inner = _package(base / "packages" / "inner", "inner", 100)
        records = FileBatcher().collect_files([outer, inner], ["**/*.py"])
        assert sorted(r.path.name for r in records) == ["mod.py", "top.py"]
        owners = {r.path.name: r.package for r in records}
        assert owners == {"top.py": "root", "mod.py": "inner"}

        reordered = FileBatcher().collect_files([inner, outer], ["**/*.py"])
        assert {r.path.name: r.package for r in reordered} == owners

    def test_nested_file_scored_from_owning_package(self, sample_workspace: Path):
        policy = PriorityPolicy()
        packages = PackageDetector(policy).discover_packages(["packages", "services"], sample_workspace)
        assert packages[0].name == "acme-workspace"

        records = {r.path.name: r for r in FileBatcher(policy).collect_files(packages, ["**/*.py"])}
        handlers = records["handlers.py"]
        assert handlers.package == "acme-api"
        assert handlers.priority == policy.file_priority(handlers.path, 81)
        assert records["models.py"].package == "acme-core"
        assert records["models.py"].priority == policy.file_priority(records["models.py"].path, 156)

    def test_unreadable_file_is_logged_and_dropped(self, make_tree, caplog):
        root = make_tree({"pkg/good.py": "x = 1\n"}) / "pkg"
        (root / "broken.py").symlink_to(root / "missing-target.py")

        with caplog.at_level(logging.WARNING, logger="monoindex.file_batcher"):
            records = FileBatcher().collect_files([_package(root)], ["**/*.py"])

        assert [r.path.name for r in records] == ["good.py"]
        assert any("broken.py" in r.getMessage() for r in caplog.records)

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires named pipes")
    def test_non_regular_match_is_skipped(self, make_tree, caplog):
        root = make_tree({"pkg/good.py": "x = 1\n"}) / "pkg"
        os.mkfifo(root / "pipe.py")

        with caplog.at_level(logging.DEBUG, logger="monoindex.file_batcher"):
            records = FileBatcher().collect_files([_package(root)], ["**/*.py"])

        assert [r.path.name for r in records] == ["good.py"]
        assert any("pipe.py" in r.getMessage() for r in caplog.records)

    def test_missing_package_root_raises(self, temp_dir: Path):
        with pytest.raises(AnalysisError):
            FileBatcher().collect_files([_package(temp_dir / "gone")], ["**/*.py"])

    def test_create_batches_uses_target_paths(self, make_tree):
        root = make_tree({
            "pkg/core.py": "a" * 400,
            "pkg/extra.py": "b" * 400,
            "pkg/sub/deep.py": "c" * 400,
        }) / "pkg"
        config = AnalysisConfig(target_paths=["sub/*.py"], ignore_patterns=[], max_tokens_per_batch=1000)
        batches = FileBatcher().create_batches([_package(root)], config)
        assert [[f.path.name for f in b.files] for b in batches] == [["deep.py"]]

    def test_create_batches_orders_by_priority(self, make_tree):
        root = make_tree({
            "pkg/plain.py": "a" * 40,
            "pkg/main.py": "b" * 40,
        }) / "pkg"
        config = AnalysisConfig(ignore_patterns=[], max_tokens_per_batch=10)
        batches = FileBatcher().create_batches([_package(root)], config)
        assert [b.files[0].path.name for b in batches] == ["main.py", "plain.py"]
