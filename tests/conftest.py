"""
Shared fixtures for the techdebt-report test suite.

Provides:
- an item factory with sensible defaults
- shard writing under a KSP-style generated directory
- a throwaway git repository with a fixed author
"""

import json
import os
import shutil
import subprocess
from pathlib import Path

import pytest

from techdebt_report.items import ItemType, Priority, TechDebtItem


@pytest.fixture()
def make_item():
    """Factory for TechDebtItem with overridable defaults."""

    def _make(
        module_name=":app",
        name="com.example.MyClass",
        description="Test debt",
        ticket="",
        priority=Priority.HIGH,
        type=ItemType.TECH_DEBT,
        source_set="main",
        **kwargs,
    ):
        return TechDebtItem(
            module_name=module_name,
            name=name,
            description=description,
            ticket=ticket,
            priority=Priority.parse(priority),
            type=type,
            source_set=source_set,
            **kwargs,
        )

    return _make


@pytest.fixture()
def write_shard(tmp_path):
    """Write a JSON shard to ``<module>/build/generated/ksp/<source_set>/resources/techdebt/report.json``."""

    def _write(entries, source_set="main", module_dir="app", raw=None):
        shard_dir = tmp_path / module_dir / "build" / "generated" / "ksp" / source_set / "resources" / "techdebt"
        shard_dir.mkdir(parents=True, exist_ok=True)
        shard = shard_dir / "report.json"
        shard.write_text(raw if raw is not None else json.dumps(entries), encoding="utf-8")
        return shard

    return _write


class GitRepo:
    """Minimal git driver for tests; every commit is authored by ``author``."""

    def __init__(self, path: Path, author: str = "Ada"):
        self.path = path
        self.env = dict(
            os.environ,
            GIT_AUTHOR_NAME=author,
            GIT_AUTHOR_EMAIL=f"{author.lower()}@example.com",
            GIT_COMMITTER_NAME=author,
            GIT_COMMITTER_EMAIL=f"{author.lower()}@example.com",
            GIT_CONFIG_NOSYSTEM="1",
            HOME=str(path),
        )
        self.git("init", "-q")

    def git(self, *args):
        return subprocess.run(
            ["git", "-c", "commit.gpgsign=false", *args],
            cwd=self.path,
            env=self.env,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        ).stdout

    def commit_file(self, rel_path: str, content: str, message: str = "commit") -> Path:
        target = self.path / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        self.git("add", rel_path)
        self.git("commit", "-q", "-m", message)
        return target


@pytest.fixture()
def git_repo(tmp_path):
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return GitRepo(tmp_path)
