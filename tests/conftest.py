"""Pytest configuration and fixtures for monoindex tests."""

import shutil
import tempfile
import textwrap
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Write ``files`` (relative path -> dedented content) under ``root``."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return root


def position_of(text: str, needle: str, occurrence: int = 0):
    """1-based (line, column) of the ``occurrence``-th ``needle`` in ``text``."""
    index = -1
    for _ in range(occurrence + 1):
        index = text.index(needle, index + 1)
    line = text.count("\n", 0, index) + 1
    column = index - (text.rfind("\n", 0, index) + 1) + 1
    return line, column


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp.resolve()
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def make_tree(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Return a helper writing a file tree into the temporary directory."""

    def _make(files: Dict[str, str]) -> Path:
        return write_tree(temp_dir, files)

    return _make


SAMPLE_WORKSPACE = {
    "pyproject.toml": """
        [project]
        name = "acme-workspace"
        version = "0.1.0"
    """,
    "packages/core/pyproject.toml": """
        [project]
        name = "acme-core"
        version = "1.0.0"
        dependencies = ["pydantic>=2"]

        [project.optional-dependencies]
        dev = ["mypy>=1.0"]
    """,
    "packages/core/src/acme_core/__init__.py": """
        from .models import User, Role
        from .util import slugify

        __all__ = ["User", "Role", "slugify"]
    """,
    "packages/core/src/acme_core/models.py": """
        from enum import Enum


        class Role(Enum):
            ADMIN = "admin"
            USER = "user"


        class User:
            def __init__(self, name, role=Role.USER):
                self.name = name
                self.role = role

            @property
            def display(self):
                return self.name.title()

            def is_admin(self):
                return self.role is Role.ADMIN
    """,
    "packages/core/src/acme_core/util.py": """
        def slugify(text):
            return text.lower().replace(" ", "-")


        def _internal():
            return slugify("x")
    """,
    "packages/core/tests/test_util.py": """
        from acme_core import slugify


        def test_slugify():
            assert slugify("A B") == "a-b"
    """,
    "packages/notes/README.md": "Not a package.\n",
    "services/api/pyproject.toml": """
        [project]
        name = "acme-api"
        version = "0.1.0"
        dependencies = ["acme-core", "fastapi"]
    """,
    "services/api/api_app/__init__.py": "",
    "services/api/api_app/handlers.py": """
        from acme_core import User, slugify
        from acme_core.models import Role


        def create_user(name):
            user = User(name)
            return slugify(user.display)


        def promote(user):
            user.role = Role.ADMIN
            return user.is_admin()
    """,
}


@pytest.fixture
def sample_workspace(make_tree) -> Path:
    """A small monorepo: root manifest, a typed core library and an API service."""
    return make_tree(SAMPLE_WORKSPACE)
