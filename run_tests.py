#!/usr/bin/env python3
"""
Test runner for golinks.
Runs the whole suite; extra arguments are passed through to pytest.
"""

import os
import subprocess
import sys


def run_tests(extra_args):
    """Run the test suite"""
    print("🧪 Running golinks tests")
    print("=" * 40)

    # Tests import main.py from the project root
    os.chdir(os.path.dirname(os.path.abspath(__file__)))

    try:
        subprocess.run([
            sys.executable, "-m", "pytest",
            "tests/",
            "-v",
            "--tb=short",
            *extra_args,
        ], check=True)

        print("\n✅ All tests passed!")
        return 0

    except subprocess.CalledProcessError as e:
        print(f"\n❌ Tests failed with exit code {e.returncode}")
        return e.returncode
    except FileNotFoundError:
        print("❌ pytest not found. Install with: pip install -e '.[test]'")
        return 1


if __name__ == "__main__":
    sys.exit(run_tests(sys.argv[1:]))
