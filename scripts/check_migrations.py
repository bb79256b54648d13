#!/usr/bin/env python
"""
Verify that models match migrations.
Fails CI if there are pending model changes not captured in migrations.

Needs a reachable database at DATABASE_URL, upgraded to head.
"""

import os
import subprocess
import sys


def run_alembic(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["alembic", *args],
        capture_output=True,
        text=True,
        check=False,
        env={"PYTHONPATH": "src", **os.environ},
    )


def main() -> int:
    """Check if migrations are in sync with models."""
    print("Upgrading database to head...")
    upgrade = run_alembic("upgrade", "head")
    if upgrade.returncode != 0:
        print(f"❌ Alembic upgrade failed: {upgrade.stdout}{upgrade.stderr}")
        return 1

    print("Checking if migrations are in sync with models...")
    result = run_alembic("check")
    output = result.stdout + result.stderr

    if result.returncode != 0:
        print("❌ Pending model changes not captured in migrations:")
        print(output)
        return 1

    print("✅ Models and migrations are in sync")
    return 0


if __name__ == "__main__":
    sys.exit(main())
