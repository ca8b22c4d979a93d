# -----------------------------------------------------------------------------
#  radical.py
#  p-radicals of an order, and radicals modulo composite numbers
# -----------------------------------------------------------------------------

"""
For a prime p the p-radical of O is the set of x in O with x^k in pO for
some k. Two kernels compute it:

* p > degree: the kernel of the trace form modulo p;
* p <= degree: the kernel of x -> x^(p^j) modulo p, with p^j >= degree.

`radical` accepts a composite modulus q as well. The trace kernel is then
taken over Z/qZ, and the first non-unit pivot met during elimination is
reported as a splitting of q instead of a result.
"""

from __future__ import annotations

from dataclasses import dataclass

from roundfour.ideals import Ideal
from roundfour.linalg import hnf_modular_eldiv, left_kernel_mod
from roundfour.orders import Order
from roundfour.runtime import trace
from roundfour.utility import AlgebraicInvariantViolation, is_prime, primes_up_to


@dataclass(frozen=True)
class Certified:
    ideal: Ideal


@dataclass(frozen=True)
class Split:
    factor: int


RadicalResult = Certified | Split


def _ideal_from_kernel(O: Order, q: int, kernel: list[list[int]]) -> Ideal:
    if not kernel:
        return Ideal.principal(O, q)
    gens = [[q * c for c in O.one], *kernel]
    return Ideal.from_basis(O, kernel, modulus=q, gens=gens)


def _frobenius_exponent(p: int, n: int) -> int:
    """p^j for the smallest j with p^j >= n."""
    e = p
    while e < n:
        e *= p
    return e


def pradical_trace(O: Order, p: int) -> Ideal:
    g, kernel = left_kernel_mod(O.trace_matrix, p)
    if g != 1:
        raise AlgebraicInvariantViolation("trace kernel split a prime modulus", p=p, factor=g)
    return _ideal_from_kernel(O, p, kernel)


def pradical_frobenius(O: Order, p: int) -> Ideal:
    n = O.degree
    e = _frobenius_exponent(p, n)
    rows = []
    for i in range(n):
        unit = [0] * n
        unit[i] = 1
        rows.append(O.powmod(unit, e, p))
    g, kernel = left_kernel_mod(rows, p)
    if g != 1:
        raise AlgebraicInvariantViolation("Frobenius kernel split a prime modulus", p=p, factor=g)
    return _ideal_from_kernel(O, p, kernel)


def pradical(O: Order, p: int) -> Ideal:
    """The p-radical of O for a prime p."""
    if p > O.degree:
        return pradical_trace(O, p)
    return pradical_frobenius(O, p)


def radical(O: Order, q: int) -> RadicalResult:
    """
    Radical of O modulo q, or a proper factor of q discovered on the way.
    Small moduli (q <= degree) are only handled when prime; a small
    composite is split by its least prime factor.
    """
    q = int(q)
    if q <= O.degree:
        if is_prime(q):
            return Certified(pradical_frobenius(O, q))
        factor = next(p for p in primes_up_to(q) if q % p == 0)
        trace(2, f"radical: small modulus {q} split by {factor}")
        return Split(factor)
    g, kernel = left_kernel_mod(O.trace_matrix, q)
    if g != 1:
        trace(2, f"radical: trace kernel modulo {q} exposed factor {g}")
        return Split(g)
    return Certified(_ideal_from_kernel(O, q, kernel))
