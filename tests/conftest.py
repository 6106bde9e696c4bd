"""Shared pytest fixtures: mock token tables and CLI subprocess runner."""

from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

PACKAGE_ROOT = Path(__file__).resolve().parents[1]


@dataclass(frozen=True, slots=True)
class CliResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def _res(context: Any, arg: str | None = None) -> str:
    return f"res {arg}"


def _req(context: Any, arg: str | None = None) -> Any:
    return {"content-length": 123, "accept-lang": "5.67", "none": None}.get(arg or "")


@pytest.fixture
def mock_tokens() -> dict[str, Any]:
    """Deterministic resolvers returning their own names."""

    return {
        "method": lambda context: "method",
        "url": lambda context: "url",
        "status": lambda context: "status",
        "res": _res,
        "response-time": lambda context: "response-time",
        "empty": lambda context: None,
    }


@pytest.fixture
def typed_tokens() -> dict[str, Any]:
    """Resolvers returning native numbers, numeric strings and nulls."""

    return {
        "method": lambda context: "method",
        "url": lambda context: "url",
        "status": lambda context: 200,
        "res": _res,
        "req": _req,
        "response-time": lambda context: 9.001,
        "numString": lambda context: "404",
        "empty": lambda context: None,
    }


@pytest.fixture
def request_tokens() -> dict[str, Any]:
    """A small GET request: method, url, status and response length."""

    def res(context: Any, arg: str | None = None) -> Any:
        return 42 if arg == "content-length" else None

    return {
        "method": lambda context: "GET",
        "url": lambda context: "/x",
        "status": lambda context: 200,
        "res": res,
        "missing": lambda context: None,
    }


@pytest.fixture
def package_root() -> Path:
    return PACKAGE_ROOT


@pytest.fixture
def fixtures_dir(package_root: Path) -> Path:
    return package_root / "tests" / "fixtures"


@pytest.fixture
def cli_env(package_root: Path, tmp_path: Path) -> dict[str, str]:
    env = os.environ.copy()
    existing = env.get("PYTHONPATH", "")
    root = str(package_root / "src")
    env["PYTHONPATH"] = root if not existing else f"{root}:{existing}"
    env.pop("ACCESSLOG_JSON_STRINGIFY", None)
    env["ACCESSLOG_JSON_CONFIG"] = str(tmp_path / "absent.toml")
    return env


@pytest.fixture
def run_cli(package_root: Path, cli_env: dict[str, str]) -> Callable[..., CliResult]:
    def _run(args: list[str], timeout: float = 15.0) -> CliResult:
        completed = subprocess.run(
            [sys.executable, "-m", "accesslog_json", *args],
            cwd=package_root,
            env=cli_env,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
        return CliResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    return _run
