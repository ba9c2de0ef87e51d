"""Run every example and compare its stdout with the ``# =>`` comments."""

import os
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
EXPECTED_MARKER = "# =>"

EXAMPLES = sorted((REPO_ROOT / "examples").glob("ex_*/01_*.py"))


def expected_output(example: Path) -> list[str]:
    return [
        line.split(EXPECTED_MARKER, maxsplit=1)[1].strip()
        for line in example.read_text(encoding="utf-8").splitlines()
        if EXPECTED_MARKER in line
    ]


def run_example(example: Path) -> subprocess.CompletedProcess[str]:
    env = {**os.environ, "PYTHONPATH": str(REPO_ROOT / "src")}
    return subprocess.run(  # noqa: S603
        [sys.executable, str(example)],
        cwd=example.parent,
        env=env,
        capture_output=True,
        text=True,
        check=False,
        timeout=30,
    )


def test_every_topic_has_an_example() -> None:
    topics = {example.parent.name for example in EXAMPLES}

    assert topics == {"ex_01_quickstart", "ex_02_arguments", "ex_03_errors", "ex_04_lifecycle"}


@pytest.mark.parametrize("example", EXAMPLES, ids=lambda example: example.parent.name)
def test_example_prints_expected_lines(example: Path) -> None:
    completed = run_example(example)

    assert completed.returncode == 0, completed.stderr
    assert completed.stderr == ""
    assert completed.stdout.splitlines() == expected_output(example)
