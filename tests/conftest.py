"""Shared fixtures for testing."""

from __future__ import annotations

import os

import pytest

from gitbridge.core.config import GitBridgeConfig
from gitbridge.core.process import GitExecutor
from gitbridge.git.service import GitService

_LEGACY_ENV_NAMES = ("USE_LOCAL_GIT", "LOCAL_GIT_DIRECTORY", "LOCAL_GIT_PATH")


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Prevent .env file and shell env from leaking into tests.

    GitBridgeConfig.model_config has env_file=".env" which loads the project
    .env relative to cwd. Nullify it at the source.
    """
    monkeypatch.setitem(GitBridgeConfig.model_config, "env_file", None)
    for key in list(os.environ):
        if key.startswith("GITBRIDGE_") or key in _LEGACY_ENV_NAMES:
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config():
    # Plain "git" from PATH; no discovery subprocesses to mock.
    return GitBridgeConfig(use_local_git=False)


@pytest.fixture
def executor(config):
    return GitExecutor(config=config)


@pytest.fixture
def service(executor):
    return GitService(executor)


@pytest.fixture
def cwd(tmp_path):
    return tmp_path
