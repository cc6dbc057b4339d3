"""Tests for testing/_assertions.py."""

from __future__ import annotations

import pytest

from sqla_rls.compiler._interpret import interpret_filter_config
from sqla_rls.compiler._predicate import PredicateResult
from sqla_rls.policy._filter import ALL_RECORDS, DENY_ALL
from sqla_rls.testing import (
    assert_denies,
    assert_params_consistent,
    assert_restricts,
    assert_unrestricted,
)


class TestAssertDenies:
    def test_passes_on_deny(self):
        assert_denies(PredicateResult.deny())

    def test_fails_on_restrict(self):
        with pytest.raises(AssertionError, match="deny-all"):
            assert_denies(interpret_filter_config("user_id", {"userId": 1}, "t"))


class TestAssertUnrestricted:
    def test_passes(self):
        assert_unrestricted(interpret_filter_config(ALL_RECORDS, {}, "t"))

    def test_fails_on_unapplied(self):
        with pytest.raises(AssertionError):
            assert_unrestricted(PredicateResult.unapplied())


class TestAssertRestricts:
    def test_exact_match(self):
        result = interpret_filter_config("user_id", {"userId": 1}, "t")
        assert_restricts(result, clause="t.user_id = $1", values=[1])

    def test_wrong_clause(self):
        result = interpret_filter_config("user_id", {"userId": 1}, "t")
        with pytest.raises(AssertionError, match="clause"):
            assert_restricts(result, clause="t.user_id = $2")

    def test_wrong_values(self):
        result = interpret_filter_config("user_id", {"userId": 1}, "t")
        with pytest.raises(AssertionError, match="bound values"):
            assert_restricts(result, values=[2])

    def test_fails_on_deny(self):
        with pytest.raises(AssertionError):
            assert_restricts(interpret_filter_config(DENY_ALL, {}, "t"))


class TestAssertParamsConsistent:
    def test_consistent(self):
        assert_params_consistent("WHERE a = $1 AND b = $2", ["x", 1])

    def test_gap(self):
        with pytest.raises(AssertionError):
            assert_params_consistent("WHERE a = $1 AND b = $3", ["x", 1])

    def test_extra_param(self):
        with pytest.raises(AssertionError):
            assert_params_consistent("WHERE a = $1", ["x", 1])
