"""
run_all.py
----------
Runs the pipeline stages in order: every processing/NN_*.py script,
then report.py. Execute from the project root:

    python run_all.py
    python run_all.py --from 03   # retrain and re-render only

The first failing stage stops the run with a non-zero exit.
"""

import argparse
import glob
import os
import re
import subprocess
import sys
import time

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
STAGE_PATTERN = re.compile(r"^(\d{2})_\w+\.py$")
REPORT_SCRIPT = "report.py"


def discover_stages(root: str = PROJECT_ROOT) -> list[tuple[str, str]]:
    """
    (number, relative path) for each stage. Processing scripts are
    numbered by their filename prefix; the report runs last and takes
    the next number.
    """
    stages = []
    for path in sorted(glob.glob(os.path.join(root, "processing", "*.py"))):
        match = STAGE_PATTERN.match(os.path.basename(path))
        if match:
            stages.append((match.group(1), os.path.relpath(path, root)))
    last = int(stages[-1][0]) if stages else 0
    stages.append((f"{last + 1:02d}", REPORT_SCRIPT))
    return stages


def stages_from(stages: list[tuple[str, str]], start: str | None) -> list[tuple[str, str]]:
    if start is None:
        return stages
    numbers = [n for n, _ in stages]
    if start not in numbers:
        raise ValueError(
            f"Unknown stage '{start}'. Valid numbers: {', '.join(numbers)}"
        )
    return stages[numbers.index(start):]


def run_stage(number: str, path: str) -> bool:
    print(f"\n{'='*60}")
    print(f"  [{number}] {path}")
    print(f"{'='*60}")
    start = time.time()

    # Stages import crime_models without an install
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(
        p for p in (PROJECT_ROOT, os.environ.get("PYTHONPATH")) if p
    )}
    returncode = subprocess.run([sys.executable, path], cwd=PROJECT_ROOT, env=env).returncode
    elapsed = round(time.time() - start, 1)

    if returncode != 0:
        print(f"\n  ✗ FAILED (exit code {returncode}) after {elapsed}s")
        return False
    print(f"\n  ✓ Completed in {elapsed}s")
    return True


def main():
    parser = argparse.ArgumentParser(description="Run the crime count model pipeline")
    parser.add_argument(
        "--from", dest="start", metavar="N",
        help="Start from stage N (e.g. --from 03 skips cleaning and aggregation)"
    )
    args = parser.parse_args()

    try:
        stages = stages_from(discover_stages(), args.start)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    overall_start = time.time()
    for number, path in stages:
        if not run_stage(number, path):
            print(f"\nPipeline stopped at stage {number}.")
            print(f"Fix the error above and rerun with:  python run_all.py --from {number}")
            sys.exit(1)

    total = round(time.time() - overall_start, 1)
    print(f"\n  All {len(stages)} stages passed in {total}s. Charts are in reports/")


if __name__ == "__main__":
    main()
