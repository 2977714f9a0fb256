"""DevOps tasks for dotstrap.

Usage: uv run devops.py <task>
Tasks: fmt, lint, test, clean
"""

import shutil
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).parent

# Generated directories removed by `clean`
_CACHE_DIRS = ("__pycache__", ".pytest_cache", ".ruff_cache")
_BUILD_DIRS = ("build", "dist")


def _run(commands: list[list[str]]) -> None:
    """Execute a sequence of commands, exiting on first failure."""
    for cmd in commands:
        print(f"$ {' '.join(cmd)}")
        try:
            subprocess.run(cmd, check=True, cwd=ROOT)  # nosec: B603, B607
        except subprocess.CalledProcessError as e:
            print(f"Command failed: {' '.join(e.cmd)}", file=sys.stderr)
            sys.exit(e.returncode)


def format_code() -> None:
    """Format the codebase with Ruff."""
    _run([["ruff", "format", "."], ["ruff", "check", "--fix", "."]])


def lint() -> None:
    """Check formatting and lint rules without changing files."""
    _run([["ruff", "format", "--check", "."], ["ruff", "check", "."]])


def test() -> None:
    """Run the unit tests with PyTest."""
    _run([["uv", "run", "pytest", "-q"]])


def clean() -> None:
    """Remove caches and build artifacts."""
    removed = 0
    for name in _CACHE_DIRS:
        for path in ROOT.rglob(name):
            if path.is_dir():
                shutil.rmtree(path)
                removed += 1
    for name in _BUILD_DIRS:
        if (ROOT / name).is_dir():
            shutil.rmtree(ROOT / name)
            removed += 1
    for path in ROOT.rglob("*.egg-info"):
        shutil.rmtree(path)
        removed += 1
    print(f"Removed {removed} director{'y' if removed == 1 else 'ies'}.")


TASKS = {
    "fmt": format_code,
    "lint": lint,
    "test": test,
    "clean": clean,
}


def main(argv: list[str]) -> int:
    if len(argv) != 1 or argv[0] not in TASKS:
        print(__doc__.strip(), file=sys.stderr)
        return 2
    TASKS[argv[0]]()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
