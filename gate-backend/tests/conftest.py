"""Shared fixtures: real shell-script hooks in tmp_path and a checked-out repo directory."""

import os
from pathlib import Path

import pytest

from pushgate.actions.action import Action
from pushgate.core.config import Settings

REPO_NAME = "demo-repo"
COMMIT_FROM = "1111111111111111111111111111111111111111"
COMMIT_TO = "2222222222222222222222222222222222222222"
BRANCH = "refs/heads/main"


@pytest.fixture
def proxy_git_path(tmp_path):
    root = tmp_path / "remote"
    (root / REPO_NAME).mkdir(parents=True)
    return root


@pytest.fixture
def settings(tmp_path, proxy_git_path):
    return Settings(
        pre_receive_hook_path="hooks/pre-receive.sh",
        proxy_git_path=str(proxy_git_path),
        hook_timeout_seconds=10.0,
        base_dir=str(tmp_path),
    )


@pytest.fixture
def make_action(proxy_git_path):
    def _make(**overrides):
        fields = dict(
            repo_name=REPO_NAME,
            proxy_git_path=str(proxy_git_path),
            branch=BRANCH,
            commit_from=COMMIT_FROM,
            commit_to=COMMIT_TO,
        )
        fields.update(overrides)
        return Action(**fields)

    return _make


@pytest.fixture
def make_hook(tmp_path):
    """Write hooks/pre-receive.sh under tmp_path with the given shell body."""

    def _make(body: str, executable: bool = True, name: str = "pre-receive.sh") -> Path:
        hook_dir = tmp_path / "hooks"
        hook_dir.mkdir(exist_ok=True)
        path = hook_dir / name
        path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
        os.chmod(path, 0o755 if executable else 0o644)
        return path

    return _make


class FakeRedis:
    """Just the list commands AuditLog uses, with Redis index semantics."""

    def __init__(self):
        self.lists = {}

    def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    @staticmethod
    def _slice(items, start, end):
        n = len(items)
        start = max(0, start + n if start < 0 else start)
        end = end + n if end < 0 else end
        return items[start:end + 1]

    def ltrim(self, key, start, end):
        self.lists[key] = self._slice(self.lists.get(key, []), start, end)

    def lrange(self, key, start, end):
        return self._slice(self.lists.get(key, []), start, end)


@pytest.fixture
def fake_redis():
    return FakeRedis()
