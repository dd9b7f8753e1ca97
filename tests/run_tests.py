#!/usr/bin/env python3
"""
End-to-end scenario runner for safellvm.

Each scenario in tests/e2e/ is a standalone script driving the wrapper
layer the way a client program would. Every script runs in its own
interpreter, so process-wide state (backend initialization, environment
overrides) and uncaught errors are observed exactly as a user sees them.

Expected exit codes:
- scenario_*.py: 0 (the program completed)
- scenario_err_*.py: 1 (an uncaught wrapper error ended the program)

Usage:
    python tests/run_tests.py
    python tests/run_tests.py --verbose
    python tests/run_tests.py --filter emit --json
"""

import argparse
import json
import os
import subprocess
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from tqdm import tqdm

from scenario_metadata import check_output, get_expected_exit_code, parse_scenario_metadata


def run_single_scenario(scenario: Path, project_root: Path,
                        work_dir: Path) -> tuple[str, bool, int, int, str]:
    """Run one scenario script and return (name, passed, expected, actual, output)."""
    name = scenario.name
    metadata = parse_scenario_metadata(scenario)
    expected_exit_code = get_expected_exit_code(scenario, metadata)

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(project_root), env.get("PYTHONPATH", "")) if p)
    # Scenarios write their outputs here; unique per scenario for parallel runs
    out_dir = work_dir / scenario.stem
    out_dir.mkdir(parents=True, exist_ok=True)
    env["SAFELLVM_SCENARIO_OUT"] = str(out_dir)

    try:
        result = subprocess.run(
            [sys.executable, str(scenario)],
            cwd=project_root,
            env=env,
            capture_output=True,
            text=True,
            timeout=metadata.timeout_seconds,
        )
    except subprocess.TimeoutExpired:
        return name, False, expected_exit_code, -1, "SCENARIO TIMEOUT"
    except OSError as e:
        return name, False, expected_exit_code, -1, f"SCENARIO ERROR: {e}"

    actual_exit_code = result.returncode
    problems = check_output(metadata, result.stdout, result.stderr)
    passed = actual_exit_code == expected_exit_code and not problems

    output = ""
    if problems:
        output += "UNMET:\n" + "\n".join(problems) + "\n"
    if result.stdout:
        output += f"STDOUT:\n{result.stdout}\n"
    if result.stderr:
        output += f"STDERR:\n{result.stderr}\n"

    return name, passed, expected_exit_code, actual_exit_code, output


def main():
    parser = argparse.ArgumentParser(description="Run safellvm end-to-end scenarios")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show detailed output for each scenario")
    parser.add_argument("-j", "--jobs", type=int, default=4,
                        help="Number of parallel scenario jobs (default: 4)")
    parser.add_argument("--filter", type=str,
                        help="Only run scenarios whose name contains this pattern")
    parser.add_argument("--json", action="store_true",
                        help="Output results in JSON format")

    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    tests_dir = project_root / "tests"
    work_dir = tests_dir / "bin"
    work_dir.mkdir(exist_ok=True)

    scenarios = sorted((tests_dir / "e2e").glob("scenario_*.py"))
    if args.filter:
        scenarios = [s for s in scenarios if args.filter in s.name]

    if not scenarios:
        if not args.json:
            print("No scenarios found!")
        return 1

    if not args.json:
        print(f"Running {len(scenarios)} scenarios with {args.jobs} parallel jobs...")
        print()

    start_time = time.time()

    results = []
    show_progress = not args.json and not args.verbose
    with ThreadPoolExecutor(max_workers=args.jobs) as executor:
        futures = {executor.submit(run_single_scenario, s, project_root, work_dir): s
                   for s in scenarios}
        if show_progress:
            pbar = tqdm(total=len(scenarios), desc="Running scenarios", unit="scenario",
                        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]")
        for future in as_completed(futures):
            results.append(future.result())
            if show_progress:
                pbar.update(1)
        if show_progress:
            pbar.close()

    end_time = time.time()

    passed_scenarios = []
    failed_scenarios = []

    for name, passed, expected, actual, output in sorted(results):
        if passed:
            passed_scenarios.append(name)
            if args.verbose and not args.json:
                print(f"✓ {name} (expected: {expected}, actual: {actual})")
        else:
            failed_scenarios.append((name, expected, actual, output))
            if not args.json:
                print(f"✗ {name} (expected: {expected}, actual: {actual})")
                if args.verbose and output:
                    print(f"  Output: {output}")

    if args.json:
        json_output = {
            "total_scenarios": len(results),
            "passed": len(passed_scenarios),
            "failed": len(failed_scenarios),
            "duration_seconds": round(end_time - start_time, 2),
            "failed_scenarios": [
                {
                    "name": name,
                    "expected_exit_code": expected,
                    "actual_exit_code": actual,
                }
                for name, expected, actual, output in failed_scenarios
            ],
        }
        print(json.dumps(json_output, indent=2))
        return 1 if failed_scenarios else 0

    print()
    print(f"Scenario Results ({end_time - start_time:.2f}s):")
    print(f"  Passed: {len(passed_scenarios)}")
    print(f"  Failed: {len(failed_scenarios)}")
    print(f"  Total:  {len(results)}")

    if failed_scenarios:
        print()
        print("Failed scenarios:")
        for name, expected, actual, output in failed_scenarios:
            print(f"  {name}: expected {expected}, got {actual}")
        return 1

    print()
    print("All scenarios passed! ✓")
    return 0


if __name__ == "__main__":
    sys.exit(main())
