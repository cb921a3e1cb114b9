#!/usr/bin/env python3
import pytest

# Define the list of tests
tests_list = [
    "test_knot_vector.py",
    "test_linear_algebra.py",
    "test_evaluation.py",
    "test_nurbs_curve.py",
    "test_modify.py",
    "test_analyze.py",
]

# Run pytest with increased verbosity
pytest.main(["-vv"] + tests_list)
# pytest.main(["-vv", "-ra", "-Wdefault"] + tests_list)
