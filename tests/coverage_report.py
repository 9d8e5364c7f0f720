#!/usr/bin/env python3
# File: tests/coverage_report.py
"""
Generate test coverage report for the Parking Engine.
Requires: pip install coverage
"""

import coverage
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent

# Make the src layout and the test runner importable
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(Path(__file__).parent))


def generate_coverage_report():
    """Generate test coverage report"""

    cov = coverage.Coverage(
        source=['parking_engine'],
        omit=['*/tests/*', '*/__pycache__/*', '*/__main__.py']
    )
    cov.start()

    try:
        from run_tests import run_all_tests
        result = run_all_tests(verbosity=1)
    finally:
        cov.stop()
        cov.save()

    print("\n" + "=" * 60)
    print("Test Coverage Report")
    print("=" * 60)

    print("\nConsole Report:")
    cov.report(show_missing=True)

    print("\nGenerating HTML report...")
    cov.html_report(directory=str(ROOT / 'htmlcov'))
    print("HTML report generated in 'htmlcov' directory")

    print("\nGenerating XML report...")
    cov.xml_report(outfile=str(ROOT / 'coverage.xml'))
    print("XML report generated as 'coverage.xml'")

    return result.wasSuccessful()


if __name__ == "__main__":
    sys.exit(0 if generate_coverage_report() else 1)
