# tests/test_radical_multipliers.py
"""
p-radicals (trace and Frobenius kernels), split detection modulo composite
numbers, rings of multipliers and single-prime overorders.

Run: pytest -v
"""

from __future__ import annotations

from fractions import Fraction

import pytest

from roundfour.fields import NumberField
from roundfour.ideals import Ideal
from roundfour.linalg import QQMatrix
from roundfour.multipliers import ring_of_multipliers
from roundfour.orders import Order, equation_order
from roundfour.overorder import dedekind_overorder, pmaximal_overorder, poverorder
from roundfour.radical import Certified, Split, pradical, pradical_trace, radical
from roundfour.runtime import current
from roundfour.utility import AlgebraicInvariantViolation

HALF = Fraction(1, 2)


@pytest.fixture
def golden(sqrt5):
    """Z[(1 + a)/2], the maximal order of Q(sqrt 5)."""
    K, _ = sqrt5
    return Order.from_basis(K, [[1, 0], [HALF, HALF]])


# ---------- radicals --------------------------------------------------------------


def test_pradical_trace_method(sqrt5):
    _, EO = sqrt5
    P = pradical(EO, 5)
    assert P.basis_mat == QQMatrix.make([[5, 0], [0, 1]])
    assert P.norm == 5


def test_pradical_frobenius_method(sqrt5):
    _, EO = sqrt5
    P = pradical(EO, 2)
    assert P.basis_mat == QQMatrix.make([[1, 1], [0, 2]])
    assert P.contains([1, 1])


def test_pradical_unramified_prime_is_principal(sqrt5):
    _, EO = sqrt5
    P = pradical(EO, 3)
    assert P.princ_gen == 3
    assert P == Ideal.principal(EO, 3)


def test_radical_certifies_primes(sqrt5):
    _, EO = sqrt5
    assert radical(EO, 5) == Certified(pradical(EO, 5))
    assert radical(EO, 2) == Certified(pradical(EO, 2))


def test_radical_splits_composite_modulus(sqrt5):
    _, EO = sqrt5
    assert radical(EO, 15) == Split(5)


def test_radical_small_composite_split_by_least_prime():
    EO = equation_order(NumberField("x**4 + 1"))
    assert radical(EO, 4) == Split(2)


def test_pradical_trace_refuses_composite(sqrt5):
    _, EO = sqrt5
    with pytest.raises(AlgebraicInvariantViolation):
        pradical_trace(EO, 15)


# ---------- ring of multipliers -----------------------------------------------------


def test_ring_of_multipliers_enlarges_at_two(sqrt5, golden):
    _, EO = sqrt5
    O = ring_of_multipliers(pradical(EO, 2))
    assert O == golden
    assert O.discriminant == 5
    assert O.index == 2


def test_ring_of_multipliers_fixed_point(sqrt5):
    _, EO = sqrt5
    assert ring_of_multipliers(Ideal.principal(EO, 3)) is EO
    assert ring_of_multipliers(pradical(EO, 5)) is EO


@pytest.mark.parametrize("p", [2, 3, 5])
def test_radical_of_maximal_order_is_self_saturated(golden, p):
    assert ring_of_multipliers(pradical(golden, p)) == golden


def test_ring_of_multipliers_keeps_known_primes(sqrt5):
    _, EO = sqrt5
    O = ring_of_multipliers(pradical(EO.with_maximal_prime(7), 2))
    assert 7 in O.primes_of_maximality


# ---------- single-prime overorders ---------------------------------------------------


def test_dedekind_overorder_enlarges(sqrt5, golden):
    _, EO = sqrt5
    O = dedekind_overorder(EO, 2)
    assert O == golden
    assert O.discriminant == 5


def test_dedekind_overorder_certifies(sqrt5):
    _, EO = sqrt5
    O = dedekind_overorder(EO, 5)
    assert O == EO
    assert 5 in O.primes_of_maximality


def test_pmaximal_overorder_z2i():
    K = NumberField("x**2 + 4")
    EO = equation_order(K)
    O = pmaximal_overorder(EO, 2)
    assert O == Order.from_basis(K, [[1, 0], [0, HALF]])
    assert O.discriminant == -4
    assert 2 in O.primes_of_maximality


def test_poverorder_without_dedekind(monkeypatch):
    monkeypatch.setitem(current().settings, "MAXORD", {"USE_DEDEKIND": False})
    K = NumberField("x**2 + 4")
    EO = equation_order(K)
    assert poverorder(EO, 2) == Order.from_basis(K, [[1, 0], [0, HALF]])


@pytest.mark.parametrize("poly,p", [("x**3 - 2", 3), ("x**3 - 2", 2), ("x**3 - x - 1", 23)])
def test_pmaximal_overorder_of_maximal_equation_order(poly, p):
    EO = equation_order(NumberField(poly))
    O = pmaximal_overorder(EO, p)
    assert O == EO
    assert p in O.primes_of_maximality
    assert pmaximal_overorder(O, p) is O
