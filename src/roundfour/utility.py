# -----------------------------------------------------------------------------
#  Utility functions
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache
from math import gcd
from typing import Any

from sympy import factorint, integer_nthroot, isprime, perfect_power, primerange

from roundfour.runtime import CFG, trace


class RoundFourError(Exception):
    pass


class UserInputError(RoundFourError):
    pass


class AlgebraicInvariantViolation(RoundFourError):
    """
    A computed object broke an invariant the theory guarantees, e.g. a
    candidate basis that is not closed under multiplication.
    `context` holds the offending state for diagnosis.
    """

    def __init__(self, msg: str, **context: Any):
        super().__init__(msg)
        self.context = context

    def __str__(self) -> str:
        base = super().__str__()
        if not self.context:
            return base
        extra = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{base} [{extra}]"


class NonTerminationError(RoundFourError):
    """The power-ideal escalation ran past degree(O) steps."""

    def __init__(self, modulus: int, discriminant: int, depth: int):
        super().__init__(
            f"escalation for modulus {modulus} did not resolve within {depth - 1} steps "
            f"(order discriminant {discriminant})"
        )
        self.modulus = modulus
        self.discriminant = discriminant
        self.depth = depth


# --- Coprime bases -----------------------------------------------------------

def coprime_base(values: Iterable[int]) -> list[int]:
    """
    Pairwise-coprime refinement of `values`: every prime dividing some input
    divides exactly one element of the result. Zeros, signs and units are
    dropped. The result is sorted.
    """
    base: list[int] = []
    for v in values:
        v = abs(int(v))
        if v > 1:
            base = _refine(base, v)
    return sorted(base)


def _refine(base: list[int], a: int) -> list[int]:
    work = [*base, a]
    changed = True
    while changed:
        changed = False
        for i in range(len(work)):
            for j in range(i + 1, len(work)):
                g = gcd(work[i], work[j])
                if g == 1:
                    continue
                x, y = work[i] // g, work[j] // g
                rest = [w for k, w in enumerate(work) if k not in (i, j)]
                work = rest + [t for t in (g, x, y) if t > 1]
                changed = True
                break
            if changed:
                break
    return work


# --- Powers and roots ----------------------------------------------------------

def perfect_power_root(n: int) -> int:
    """Return b if n = b**k for some k > 1 (largest such k), else n."""
    if n < 4:
        return n
    pp = perfect_power(n)
    if pp:
        return int(pp[0])
    return n


def exact_root(n: int, k: int) -> int | None:
    """Return r with r**k == n, or None."""
    r, exact = integer_nthroot(n, k)
    return int(r) if exact else None


# --- Primality and factoring ---------------------------------------------------

@lru_cache(maxsize=4096)
def is_prime(n: int) -> bool:
    """Process-wide cache for primality of n."""
    return bool(isprime(int(n)))


def primes_up_to(n: int) -> list[int]:
    return [int(p) for p in primerange(2, n + 1)]


def trial_factor(n: int, bound: int | None = None) -> tuple[dict[int, int], int]:
    """
    Strip prime factors found by trial division up to `bound`
    (profile FACTORING.TRIAL_BOUND, default 10000).

    Returns (factors, remainder). A remainder below (bound + 1)**2 with no
    prime factor up to bound is prime and is moved into `factors`, so
    remainder == 1 means n is fully factored.
    """
    n = abs(int(n))
    if bound is None:
        bound = int(CFG("FACTORING.TRIAL_BOUND", 10_000))
    fac: dict[int, int] = {}
    rem = n
    for p in primerange(2, bound + 1):
        if rem == 1:
            break
        if p * p > rem:
            fac[rem] = fac.get(rem, 0) + 1
            rem = 1
            break
        while rem % p == 0:
            rem //= p
            fac[int(p)] = fac.get(int(p), 0) + 1
    else:
        if 1 < rem < (bound + 1) ** 2:
            fac[rem] = fac.get(rem, 0) + 1
            rem = 1
    return fac, rem


def full_factor(n: int) -> dict[int, int]:
    """
    Complete factorization of |n| via sympy.factorint. Only used as the
    last resort for moduli the cycle engine could not resolve.
    """
    n = abs(int(n))
    trace(1, f"full factorization of {n}")
    fac = factorint(
        n,
        use_trial=True,
        use_rho=True,
        use_pm1=True,
        use_ecm=bool(CFG("FACTORING.USE_ECM", False)),
        verbose=False,
    )
    return {int(p): int(e) for p, e in fac.items()}


def valuation(n: int, p: int) -> int:
    """p-adic valuation of a nonzero integer n."""
    n = abs(int(n))
    if n == 0:
        raise ValueError("valuation of 0 is infinite")
    v = 0
    while n % p == 0:
        n //= p
        v += 1
    return v
