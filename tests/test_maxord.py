# tests/test_maxord.py
"""
Cycle engine, tame overorder and the maximal-order drivers, end to end.

Run: pytest -v
"""

from __future__ import annotations

import gc
from fractions import Fraction

import pytest

from roundfour import maxord
from roundfour.fields import NumberField
from roundfour.ideals import Ideal
from roundfour.maxord import (
    MaximalOrderCache,
    cycle_bl,
    cycle_bl2,
    maximal_order,
    maximal_order_round_four,
    new_maximal_order,
    ring_of_integers,
    tame_overorder,
)
from roundfour.multipliers import ring_of_multipliers
from roundfour.orders import Order, equation_order
from roundfour.radical import pradical
from roundfour.runtime import current
from roundfour.utility import NonTerminationError

HALF = Fraction(1, 2)
P = 1_000_003
R = 1_000_033  # P*R = 3 mod 4, so Z[sqrt(P*R)] is maximal

# ---------- helpers -----------------------------------------------------------


def _golden(K):
    return Order.from_basis(K, [[1, 0], [HALF, HALF]])


def _gaussian(K, scale):
    """Z[i] inside Q(a) with a = scale * i."""
    return Order.from_basis(K, [[1, 0], [0, Fraction(1, scale)]])


# ---------- cycle engine --------------------------------------------------------


def test_cycle_splits_composite_modulus(sqrt5):
    _, EO = sqrt5
    O, factor = cycle_bl(EO, 15)
    assert factor == 5
    assert O is EO


def test_cycle_fixed_point_when_modulus_coprime_to_index():
    EO = equation_order(NumberField("x**3 - x - 1"))
    O, factor = cycle_bl(EO, 35)
    assert factor == 1
    assert O == EO


def test_cycle_enlarges_without_factoring():
    K = NumberField(f"x**2 + {(P * R) ** 2}")
    O, factor = cycle_bl(equation_order(K), P * R)
    assert factor == 1
    assert O == _gaussian(K, P * R)
    assert O.discriminant == -4


def test_cycle_reports_unresolvable_modulus():
    EO = equation_order(NumberField(f"x**2 - {P * R}"))
    O, factor = cycle_bl(EO, P * R)
    assert factor == P * R
    assert O == EO


def test_cycle_ramified_prime_runs_tameness_and_power_tests(sqrt5):
    """Maximal at 5 but 5 ramifies: no enlargement, no split, undecided."""
    K, _ = sqrt5
    OK = _golden(K)
    O, factor = cycle_bl(OK, 5)
    assert O is OK
    assert factor == 5


def test_power_window_gives_up_past_the_degree():
    EO = equation_order(NumberField("x**3 - x - 1"))
    with pytest.raises(NonTerminationError) as exc:
        cycle_bl2(EO, 35, Ideal.principal(EO, 35))
    assert exc.value.depth == EO.degree + 1
    assert exc.value.modulus == 35
    assert exc.value.discriminant == -23


def test_drain_splits_composites_down_to_primes(sqrt5):
    K, EO = sqrt5
    result = maxord._drain(EO, EO, [30])
    assert result.unresolved == []
    assert result.order == _golden(K)
    assert {2, 3, 5} <= result.order.primes_of_maximality


# ---------- tame overorder --------------------------------------------------------


def test_tame_overorder_leaves_composite_unresolved():
    EO = equation_order(NumberField(f"x**2 - {P * R}"))
    result = tame_overorder(EO)
    assert result.unresolved == [P * R]
    assert result.order == EO
    assert not result.order.is_maximal


def test_tame_overorder_absorbs_prime_proven_by_isprime():
    """
    P is certified prime up front and p-maximalized directly, so it never
    reaches the unresolved list. Composite moduli that cannot be split are
    kept unresolved, see test_tame_overorder_leaves_composite_unresolved.
    """
    K = NumberField(f"x**2 + {P ** 2}")
    result = tame_overorder(equation_order(K))
    assert result.unresolved == []
    assert result.order == _gaussian(K, P)
    assert result.order.is_maximal


def test_tame_overorder_extra_moduli(sqrt5):
    K, EO = sqrt5
    result = tame_overorder(EO, [15, 7])
    assert result.unresolved == []
    assert result.order == _golden(K)


# ---------- end-to-end scenarios ------------------------------------------------------


def test_sqrt5_maximal_order(sqrt5):
    K, EO = sqrt5
    assert EO.discriminant == 20
    M = maximal_order(EO)
    assert M == _golden(K)
    assert M.discriminant == 5
    assert M.index == 2
    assert M.is_maximal


@pytest.mark.parametrize("primes", [None, [], [2], [23], [2, 3, 23]])
def test_squarefree_discriminant_order_unchanged(primes):
    EO = equation_order(NumberField("x**3 - x - 1"))
    assert EO.discriminant == -23
    assert maximal_order(EO, primes) == EO


@pytest.mark.parametrize("poly", ["x**3 - 2", "x**4 + 1", "x**2 + 1"])
def test_already_maximal_equation_orders(poly):
    EO = equation_order(NumberField(poly))
    assert maximal_order(EO) == EO


def test_composite_unresolved_falls_back_to_factoring():
    EO = equation_order(NumberField(f"x**2 - {P * R}"))
    M = maximal_order(EO)
    assert M == EO
    assert M.is_maximal
    assert M.discriminant == 4 * P * R


def test_maximal_order_at_given_primes(sqrt5):
    K, EO = sqrt5
    assert maximal_order(EO, [5]) == EO
    assert maximal_order(EO, [2]) == _golden(K)
    assert {2} <= maximal_order(EO, [2]).primes_of_maximality


def test_ring_of_integers(sqrt5):
    K, _ = sqrt5
    assert ring_of_integers(K) == _golden(K)
    assert ring_of_integers(K, [2, 5]) == _golden(K)


@pytest.mark.parametrize(
    "poly,expected",
    [
        ("x**2 - 5", lambda K: _golden(K)),
        ("x**2 + 4", lambda K: _gaussian(K, 2)),
        ("x**2 + 36", lambda K: _gaussian(K, 6)),
        ("x**3 - 2", equation_order),
    ],
)
def test_algorithms_agree(poly, expected):
    K = NumberField(poly)
    EO = equation_order(K)
    bl = new_maximal_order(EO)
    r4 = maximal_order_round_four(EO)
    assert bl == r4 == expected(K)
    assert bl.is_maximal and r4.is_maximal


def test_round_four_selected_by_profile(monkeypatch, sqrt5):
    K, EO = sqrt5
    monkeypatch.setitem(current().settings, "MAXORD", {"ALGORITHM": "round-four"})
    calls = []
    real = maxord._ALGORITHMS["round-four"]

    def spy(O):
        calls.append(O)
        return real(O)

    monkeypatch.setitem(maxord._ALGORITHMS, "round-four", spy)
    assert maximal_order(EO, cache=MaximalOrderCache()) == _golden(K)
    assert len(calls) == 1


# ---------- properties -------------------------------------------------------------------


def test_idempotent(sqrt5):
    _, EO = sqrt5
    M = maximal_order(EO)
    assert maximal_order(M) is M
    assert maximal_order(M, [2, 5]) == M


def test_discriminant_divides_along_the_chain(sqrt5):
    _, EO = sqrt5
    M = maximal_order(EO)
    assert EO.discriminant % M.discriminant == 0
    assert EO.discriminant // M.discriminant == M.index ** 2


@pytest.mark.parametrize("p", [2, 3, 5, 7])
def test_maximal_order_is_multiplier_fixed_point(sqrt5, p):
    _, EO = sqrt5
    M = maximal_order(EO)
    assert ring_of_multipliers(pradical(M, p)) == M


# ---------- memoisation ----------------------------------------------------------------


def test_cache_hit_skips_computation(sqrt5):
    K, EO = sqrt5
    cache = MaximalOrderCache()
    calls = []

    def compute():
        calls.append(1)
        return new_maximal_order(EO)

    first = cache.get_or_compute(K, compute)
    second = cache.get_or_compute(K, compute)
    assert first == second == _golden(K)
    assert second.is_maximal
    assert len(calls) == 1
    assert len(cache) == 1


def test_cache_first_writer_wins(sqrt5):
    K, EO = sqrt5
    cache = MaximalOrderCache()
    cache.set(K, _golden(K))
    assert cache.set(K, EO) == _golden(K)


def test_cache_keys_by_field_identity(sqrt5):
    K, EO = sqrt5
    cache = MaximalOrderCache()
    maximal_order(EO, cache=cache)
    assert cache.get(NumberField("x**2 - 5")) is None
    assert cache.get(K) == _golden(K)
    cache.clear()
    assert len(cache) == 0
    assert cache.get(K) is None


def test_cache_rejects_foreign_order(sqrt5):
    K, _ = sqrt5
    other = equation_order(NumberField("x**2 - 5"))
    with pytest.raises(ValueError):
        MaximalOrderCache().set(K, other)


def test_cache_entry_dies_with_field():
    cache = MaximalOrderCache()

    def fill():
        K = NumberField("x**2 - 5")
        maximal_order(equation_order(K), cache=cache)
        assert len(cache) == 1

    fill()
    gc.collect()
    assert len(cache) == 0


def test_default_cache_used_without_explicit_cache(sqrt5):
    K, EO = sqrt5
    maximal_order(EO)
    assert maxord.DEFAULT_CACHE.get(K) == _golden(K)
