#!/usr/bin/env python3
"""
Script to run all examples and verify they work correctly.

This script runs all example files in the examples/ directory and reports
which ones succeed or fail. It's useful for catching documentation drift
before a release.

This is separate from automated tests because examples focus on "does this
still work?" rather than verifying exact graph contents.

Usage:
    python run_all_examples.py [--verbose]

Options:
    --verbose    Show full output from each example
"""

import subprocess
import sys
from pathlib import Path
from typing import List, Tuple

# ANSI color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ExampleRunner:
    """Runs all example files and tracks results."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.examples_dir = Path(__file__).parent / "examples"
        self.results: List[Tuple[str, bool, str]] = []

    def get_examples(self) -> List[Path]:
        return sorted(self.examples_dir.glob("*.py"))

    def run_example(self, example_path: Path) -> Tuple[bool, str]:
        """
        Run a single example file.

        Returns:
            Tuple of (success, output)
        """
        try:
            result = subprocess.run(
                [sys.executable, str(example_path)],
                capture_output=True,
                text=True,
                timeout=30,
                cwd=self.examples_dir.parent,
            )
        except subprocess.TimeoutExpired:
            return False, "ERROR: Timeout after 30 seconds"
        except OSError as e:
            return False, f"ERROR: {e}"

        return result.returncode == 0, result.stdout + result.stderr

    def print_example_result(self, success: bool, output: str):
        if success:
            print(f"{GREEN}PASS{RESET}")
        else:
            print(f"{RED}FAIL{RESET}")

        if self.verbose or not success:
            print()
            print("-" * 80)
            print(output)
            print("-" * 80)
            print()

    def print_summary(self):
        passed = sum(1 for _, success, _ in self.results if success)
        failed = len(self.results) - passed

        print()
        print("=" * 80)
        print(f"{BOLD}Summary{RESET}")
        print("=" * 80)
        print(f"Total examples: {len(self.results)}")
        print(f"{GREEN}Passed: {passed}{RESET}")
        print(f"{RED}Failed: {failed}{RESET}")

        if failed > 0:
            print()
            print(f"{RED}{BOLD}Failed examples:{RESET}")
            for name, success, _ in self.results:
                if not success:
                    print(f"  {RED}x{RESET} {name}")
        print()

    def run_all(self) -> bool:
        """
        Run all examples and return whether all passed.
        """
        examples = self.get_examples()
        if not examples:
            print(f"{YELLOW}No examples found in {self.examples_dir}{RESET}")
            return False

        print("=" * 80)
        print(f"{BOLD}Running All bqlineage Examples{RESET}")
        print("=" * 80)
        print()

        for idx, example_path in enumerate(examples, 1):
            progress = f"{BLUE}[{idx}/{len(examples)}]{RESET}"
            print(f"{progress} {example_path.name}...", end=" ", flush=True)
            success, output = self.run_example(example_path)
            self.results.append((example_path.name, success, output))
            self.print_example_result(success, output)

        self.print_summary()
        return all(success for _, success, _ in self.results)


def main():
    verbose = "--verbose" in sys.argv or "-v" in sys.argv
    all_passed = ExampleRunner(verbose=verbose).run_all()
    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
