# tests/test_utility.py
"""
Integer helpers: coprime bases, trial division, roots, error classes.

Run: pytest -v
"""

from __future__ import annotations

from math import gcd

import pytest

from roundfour.utility import (
    AlgebraicInvariantViolation,
    NonTerminationError,
    RoundFourError,
    UserInputError,
    coprime_base,
    exact_root,
    full_factor,
    is_prime,
    perfect_power_root,
    trial_factor,
    valuation,
)

P = 1_000_003
R = 1_000_033


@pytest.mark.parametrize(
    "values,expected",
    [
        ([12, 18], [2, 3]),
        ([4, 6], [2, 3]),
        ([0, 1, -6], [6]),
        ([4, 4, 4], [4]),
        ([2, 2 * P * R, 2], [2, P * R]),
        ([], []),
    ],
)
def test_coprime_base(values, expected):
    assert coprime_base(values) == expected


def test_coprime_base_is_pairwise_coprime_and_covers_support():
    values = [360, 84, 1001, 2 * 3 * 17]
    base = coprime_base(values)
    for i, a in enumerate(base):
        for b in base[i + 1:]:
            assert a != b
            assert gcd(a, b) == 1
    for p in (2, 3, 5, 7, 11, 13, 17):
        assert sum(1 for b in base if b % p == 0) == 1


def test_trial_factor_strips_small_primes_and_keeps_large_remainder():
    fac, rem = trial_factor(2**3 * 7 * P, bound=100)
    assert fac == {2: 3, 7: 1}
    assert rem == P


def test_trial_factor_moves_small_remainder_into_factors():
    assert trial_factor(91, bound=100) == ({7: 1, 13: 1}, 1)
    assert trial_factor(1, bound=100) == ({}, 1)


def test_trial_factor_remainder_just_past_the_last_prime():
    # 113 < 11**2 survives 2, 3, 5, 7; 121 = 11**2 must stay a remainder
    assert trial_factor(2 * 113, bound=10) == ({2: 1, 113: 1}, 1)
    assert trial_factor(121, bound=10) == ({}, 121)


def test_trial_factor_default_bound_comes_from_profile():
    fac, rem = trial_factor(P * R)
    assert fac == {}
    assert rem == P * R


def test_full_factor():
    assert full_factor(P * R) == {P: 1, R: 1}
    assert full_factor(-20) == {2: 2, 5: 1}


def test_perfect_powers_and_roots():
    assert perfect_power_root(P**2) == P
    assert perfect_power_root(2**10) == 2
    assert perfect_power_root(12) == 12
    assert exact_root(27, 3) == 3
    assert exact_root(28, 3) is None


def test_valuation_and_primality():
    assert valuation(40, 2) == 3
    assert valuation(-45, 3) == 2
    assert valuation(7, 2) == 0
    with pytest.raises(ValueError):
        valuation(0, 2)
    assert is_prime(P)
    assert not is_prime(P * R)


def test_error_taxonomy():
    assert issubclass(UserInputError, RoundFourError)
    err = AlgebraicInvariantViolation("not a ring", i=0, j=1)
    assert isinstance(err, RoundFourError)
    assert err.context == {"i": 0, "j": 1}
    assert "not a ring" in str(err) and "i=0" in str(err)

    nt = NonTerminationError(15, -20, 3)
    assert (nt.modulus, nt.discriminant, nt.depth) == (15, -20, 3)
    assert "15" in str(nt)
