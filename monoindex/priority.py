"""Priority heuristics for packages and files.

The keyword buckets and point values are policy, not law: every table lives
on :class:`PriorityPolicy` and can be replaced from configuration.  The
defaults reproduce the historical scoring exactly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Tuple


@dataclass(frozen=True)
class KeywordBucket:
    """Award ``points`` when any of ``words`` occurs in a name."""

    words: Tuple[str, ...]
    points: float

    def matches(self, name: str) -> bool:
        return any(w in name for w in self.words)


def _buckets(*pairs: Tuple[Sequence[str], float]) -> List[KeywordBucket]:
    return [KeywordBucket(tuple(words), points) for words, points in pairs]


DEFAULT_PACKAGE_SCORES: Dict[str, float] = {
    "root": 200,
    "packages": 100,
    "libs": 90,
    "services": 80,
    "apps": 60,
    "tools": 40,
}

DEFAULT_FILE_KEYWORDS = _buckets(
    (["index", "main", "core"], 20),
    (["api", "service", "client", "gateway", "repository"], 15),
    (["type", "interface", "model", "schema", "types"], 15),
    (["util", "helper", "utils", "helpers"], 10),
    (["config", "configuration"], 10),
    (["constant", "enum"], 5),
    (["hook", "component", "components"], 5),
)

DEFAULT_DIR_KEYWORDS = _buckets(
    (["src", "source", "lib", "library"], 10),
    (["api", "services", "clients"], 15),
    (["types", "models", "interfaces"], 15),
    (["hooks", "components", "elements"], 5),
)


@dataclass
class PriorityPolicy:
    package_scores: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_PACKAGE_SCORES))
    default_package_score: float = 10
    central_markers: Tuple[str, ...] = ("core", "shared", "common", "util")
    central_bonus: float = 50
    dependency_weight: float = 0.5
    dependency_cap: float = 30
    typed_bonus: float = 5
    file_keywords: List[KeywordBucket] = field(default_factory=lambda: list(DEFAULT_FILE_KEYWORDS))
    dir_keywords: List[KeywordBucket] = field(default_factory=lambda: list(DEFAULT_DIR_KEYWORDS))
    test_markers: Tuple[str, ...] = ("test", "spec")
    test_penalty: float = 50

    # ------------------------------------------------------------------
    # Packages
    # ------------------------------------------------------------------

    def package_priority(self, name: str, kind: str, dependency_count: int, typed: bool) -> float:
        priority = self.package_scores.get(kind.lower(), self.default_package_score)
        lowered = name.lower()
        if any(marker in lowered for marker in self.central_markers):
            priority += self.central_bonus
        priority += min(dependency_count * self.dependency_weight, self.dependency_cap)
        if typed:
            priority += self.typed_bonus
        return priority

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def file_priority(self, file_path: Path, package_priority: float) -> float:
        priority = package_priority
        stem = file_path.stem.lower()
        dir_name = file_path.parent.name.lower()

        for bucket in self.file_keywords:
            if bucket.matches(stem):
                priority += bucket.points
        for bucket in self.dir_keywords:
            if bucket.matches(dir_name):
                priority += bucket.points

        # Exclude patterns should already drop these; penalise anything that slips through.
        if any(marker in stem for marker in self.test_markers):
            priority -= self.test_penalty
        return priority

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "PriorityPolicy":
        """Build a policy from a ``[priority]`` config table.

        Keyword tables are given as lists of ``{words = [...], points = N}``
        and replace the defaults wholesale; ``package_scores`` is merged
        over the defaults.
        """
        policy = cls()
        scores = data.get("package_scores")
        if scores is not None:
            if not isinstance(scores, dict):
                raise ValueError("priority.package_scores must be a table")
            policy.package_scores.update({str(k).lower(): float(v) for k, v in scores.items()})
        for key in ("file_keywords", "dir_keywords"):
            raw = data.get(key)
            if raw is None:
                continue
            if not isinstance(raw, list):
                raise ValueError(f"priority.{key} must be an array of tables")
            buckets: List[KeywordBucket] = []
            for entry in raw:
                if not isinstance(entry, dict) or "words" not in entry or "points" not in entry:
                    raise ValueError(f"priority.{key} entries need 'words' and 'points'")
                buckets.append(KeywordBucket(
                    tuple(str(w).lower() for w in entry["words"]),
                    float(entry["points"]),
                ))
            setattr(policy, key, buckets)
        for key in ("default_package_score", "central_bonus", "dependency_weight",
                    "dependency_cap", "typed_bonus", "test_penalty"):
            if key in data:
                setattr(policy, key, float(data[key]))  # type: ignore[arg-type]
        for key in ("central_markers", "test_markers"):
            if key in data:
                value = data[key]
                if not isinstance(value, list):
                    raise ValueError(f"priority.{key} must be an array of strings")
                setattr(policy, key, tuple(str(v).lower() for v in value))
        return policy
