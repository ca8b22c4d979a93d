# -----------------------------------------------------------------------------
#  maxord.py
#  Maximal orders: Buchmann-Lenstra cycle, tame overorder, drivers and cache
# -----------------------------------------------------------------------------

"""
The maximal order is reached without factoring the discriminant whenever
possible. Candidate moduli come from the elementary divisors of the trace
matrix; each is treated as if it were prime. The radical and multiplier
computations either enlarge the order, certify it, or expose a proper factor
of the modulus. Moduli that resist all of this are handed back as
"unresolved" and factored in full as a last resort.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Callable, Iterable
from math import gcd
from typing import NamedTuple

from roundfour.fields import NumberField
from roundfour.ideals import Ideal
from roundfour.linalg import QQMatrix, divisors, elementary_divisors
from roundfour.multipliers import ring_of_multipliers
from roundfour.orders import Order, equation_order
from roundfour.overorder import pmaximal_overorder
from roundfour.radical import Split, radical
from roundfour.runtime import CFG, trace
from roundfour.utility import (
    AlgebraicInvariantViolation,
    NonTerminationError,
    coprime_base,
    exact_root,
    full_factor,
    is_prime,
    perfect_power_root,
    primes_up_to,
    trial_factor,
    valuation,
)


class CycleResult(NamedTuple):
    order: Order
    factor: int  # 1: done, q: unresolved, otherwise a proper divisor of q


class TameResult(NamedTuple):
    order: Order
    unresolved: list[int]


# --- Cycle engine ---------------------------------------------------------------

def cycle_bl(O: Order, q: int) -> CycleResult:
    """
    Treat q as a prime: enlarge O at q until the multiplier ring stops
    growing, then test tameness. Returns the (possibly larger) order and
    1 when O is q-maximal, a proper factor of q when one surfaced, or q
    itself when nothing could be decided.
    """
    while True:
        res = radical(O, q)
        if isinstance(res, Split):
            return CycleResult(O, res.factor)
        I = res.ideal
        if I.princ_gen == q:
            return CycleResult(O, 1)
        trace(2, f"cycle: ring of multipliers at {q}")
        O1 = ring_of_multipliers(I)
        if O1.discriminant == O.discriminant:
            break
        if gcd(O1.discriminant, q) == 1:
            return CycleResult(O1, 1)
        O = O1

    trace(2, f"cycle: {q} could not enlarge, testing tameness")
    inva = Ideal.principal(O, 1).colon(I)
    M1 = inva.basis_mat_inv
    if not M1.is_integral:
        raise AlgebraicInvariantViolation("(O : I) does not contain O", modulus=q, basis=inva.basis_mat)
    for g in divisors(M1.num, q):
        q1 = gcd(q, g)
        if q1 not in (1, q):
            trace(1, f"cycle: tameness test split {q} by {q1}")
            return CycleResult(O, q1)
    return cycle_bl2(O, q, I)


def cycle_bl2(O: Order, q: int, I: Ideal) -> CycleResult:
    """Compare (I^k + qO)^2 against (I^(k-1) + qO)(I^(k+1) + qO) for growing k."""
    qO = Ideal.principal(O, q)
    window = [I, I * I]
    window.append(window[1] * I)
    h = 2
    while True:
        if h > O.degree:
            raise NonTerminationError(q, O.discriminant, h)
        I1 = (window[0] + qO) * (window[2] + qO)
        I2 = (window[1] + qO) ** 2
        M2 = I2.basis_mat * I1.basis_mat_inv
        if not M2.is_integral:
            raise AlgebraicInvariantViolation("power ideals are not nested", modulus=q, depth=h)
        G2 = divisors(M2.num, q)
        if not G2:
            h += 1
            window = [window[1], window[2], window[2] * I]
            continue
        for g in G2:
            q1 = gcd(q, g)
            if q1 not in (1, q):
                trace(1, f"cycle: power ideals split {q} by {q1}")
                return CycleResult(O, q1)
        break
    r = exact_root(q, h)
    if r is not None:
        return CycleResult(O, r)
    return CycleResult(O, q)


# --- Tame overorder -------------------------------------------------------------

def _absorb_prime(O: Order, OO: Order, p: int) -> Order:
    """Add the p-maximal overorder of O into OO."""
    if p in OO.primes_of_maximality:
        return OO
    trace(1, f"p-maximal overorder at {p}")
    O1 = pmaximal_overorder(O, p)
    if valuation(O1.discriminant, p) < valuation(OO.discriminant, p):
        OO = OO + O1
    return OO.with_maximal_prime(p)


def _drain(O: Order, OO: Order, moduli: Iterable[int]) -> TameResult:
    work = coprime_base(moduli)
    unresolved: list[int] = []
    while work:
        q = work.pop()
        if is_prime(q):
            OO = _absorb_prime(O, OO, q)
            continue
        trace(1, f"cycle at modulus {q}")
        OO, q1 = cycle_bl(OO, q)
        if q1 == 1:
            continue
        if q1 == q:
            trace(1, f"modulus {q} left unresolved")
            unresolved.append(q)
            continue
        work = coprime_base([*work, q1, q // q1])
    return TameResult(OO, sorted(unresolved))


def tame_overorder(O: Order, extra_moduli: Iterable[int] = ()) -> TameResult:
    """
    Overorder of O that is maximal at every prime except possibly those
    dividing the returned unresolved moduli. An empty list certifies the
    order as maximal.
    """
    OO = O
    seeds = [*elementary_divisors(O.trace_matrix), *primes_up_to(O.degree)]
    rest: list[int] = []
    for m in coprime_base(seeds):
        m = perfect_power_root(m)
        if is_prime(m):
            OO = _absorb_prime(O, OO, m)
        else:
            rest.append(m)

    bound = max(int(CFG("FACTORING.TRIAL_BOUND", 10_000)), O.degree)
    moduli: list[int] = []
    for m in coprime_base([*rest, OO.discriminant, *extra_moduli]):
        fac, rem = trial_factor(m, bound)
        for p in fac:
            OO = _absorb_prime(O, OO, p)
        if rem != 1:
            moduli.append(perfect_power_root(rem))

    result = _drain(O, OO, moduli)
    if not result.unresolved:
        return TameResult(result.order.mark_maximal(), [])
    return result


# --- Drivers --------------------------------------------------------------------

def maximal_order_at(O: Order, primes: Iterable[int]) -> Order:
    """Overorder of O that is p-maximal at every p in `primes`."""
    primes = [int(p) for p in primes]
    OO = O
    if not primes:
        return OO
    if O.gen_index.denominator != 1:
        for p in primes:
            OO = pmaximal_overorder(OO, p).with_maximal_prime(p)
        return OO

    ind = O.index
    EO = equation_order(O.field)
    for p in primes:
        trace(1, f"p-maximal overorder at {p}")
        if ind % p == 0:
            OO = pmaximal_overorder(OO, p)
        else:
            O1 = pmaximal_overorder(EO, p)
            if O1.index % p == 0:
                OO = OO + O1
        OO = OO.with_maximal_prime(p)
    return OO


def new_maximal_order(O: Order) -> Order:
    """Maximal order containing O via the Buchmann-Lenstra strategy."""
    if O.degree == 1:
        return O.mark_maximal()

    d = O.discriminant
    candidates = coprime_base(divisors(O.trace_matrix, d))
    trace(1, f"factors of the discriminant: {candidates}")

    OO = O
    leftover: list[int] = []
    for m in candidates:
        fac, rem = trial_factor(m)
        if fac:
            OO = OO + maximal_order_at(O, fac)
        if rem != 1:
            leftover.append(perfect_power_root(rem))
    if not leftover:
        return OO.mark_maximal()

    OO, unresolved = _drain(OO, OO, leftover)
    for q in unresolved:
        trace(1, f"factoring unresolved modulus {q}")
        OO = OO + maximal_order_at(OO, full_factor(q))
    return OO.mark_maximal()


def maximal_order_round_four(O: Order) -> Order:
    """Maximal order via the full factorization of disc(O)."""
    OO = O
    for p, e in sorted(full_factor(O.discriminant).items()):
        if e == 1:
            continue
        trace(1, f"p-maximal overorder at {p}")
        O1 = pmaximal_overorder(O, p)
        if valuation(O1.discriminant, p) < valuation(OO.discriminant, p):
            OO = OO + O1
    return OO.mark_maximal()


_ALGORITHMS: dict[str, Callable[[Order], Order]] = {
    "buchmann-lenstra": new_maximal_order,
    "round-four": maximal_order_round_four,
}


def maximal_order(
    O: Order,
    primes: Iterable[int] | None = None,
    *,
    cache: MaximalOrderCache | None = None,
) -> Order:
    """
    With `primes`: the overorder of O that is maximal at those primes.
    Without: the maximal order of O's field, memoised per field.
    """
    if primes is not None:
        return maximal_order_at(O, primes)
    if O.is_maximal:
        return O
    if cache is None:
        cache = DEFAULT_CACHE

    def compute() -> Order:
        algo = str(CFG("MAXORD.ALGORITHM", "buchmann-lenstra"))
        trace(1, f"computing the maximal order ({algo})")
        return _ALGORITHMS[algo](O).mark_maximal()

    return cache.get_or_compute(O.field, compute)


def ring_of_integers(
    K: NumberField,
    primes: Iterable[int] | None = None,
    *,
    cache: MaximalOrderCache | None = None,
) -> Order:
    return maximal_order(equation_order(K), primes, cache=cache)


# --- Per-field memoisation --------------------------------------------------------

class _Entry(NamedTuple):
    basis_mat: QQMatrix
    discriminant: int


class MaximalOrderCache:
    """
    Maximal orders keyed weakly by field identity. Entries hold only the
    basis and discriminant, never the field, so a field that is no longer
    referenced drops its entry. The first stored value wins; computation
    happens outside the lock.
    """

    def __init__(self) -> None:
        self._entries: weakref.WeakKeyDictionary[NumberField, _Entry] = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    def get(self, K: NumberField) -> Order | None:
        with self._lock:
            entry = self._entries.get(K)
        if entry is None:
            return None
        return Order(K, entry.basis_mat, is_maximal=True, _disc=entry.discriminant)

    def set(self, K: NumberField, O: Order) -> Order:
        if O.field is not K:
            raise ValueError("order belongs to a different number field")
        with self._lock:
            if K not in self._entries:
                self._entries[K] = _Entry(O.basis_mat, O.discriminant)
        return self.get(K)

    def get_or_compute(self, K: NumberField, compute: Callable[[], Order]) -> Order:
        hit = self.get(K)
        if hit is not None:
            trace(2, "maximal order cache hit")
            return hit
        return self.set(K, compute())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


DEFAULT_CACHE = MaximalOrderCache()
