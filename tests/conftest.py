"""Shared fixtures: synthetic Prosper-style loan exports."""

import pytest

from synthetic import make_raw_loans


@pytest.fixture
def raw_loan_factory():
    return make_raw_loans


@pytest.fixture
def raw_loans():
    return make_raw_loans(n=400, seed=1)


@pytest.fixture
def complete_raw_loans():
    return make_raw_loans(n=1500, seed=2, complete=True)
