"""Shared test configuration and fixtures."""

from __future__ import annotations

import pytest

from tests.fixtures.harness import BIG_BUDGET, Harness, build_harness


@pytest.fixture
def harness() -> Harness:
    return build_harness()


@pytest.fixture
def harness_without_dictionary() -> Harness:
    return build_harness(with_dictionary=False)


@pytest.fixture
def big_budget() -> int:
    return BIG_BUDGET
