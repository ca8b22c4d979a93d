# -----------------------------------------------------------------------------
#  overorder.py
#  Single-prime enlargement: Dedekind criterion and the Pohst-Zassenhaus step
# -----------------------------------------------------------------------------

from __future__ import annotations

from fractions import Fraction

from sympy import Poly

from roundfour.multipliers import ring_of_multipliers
from roundfour.orders import Order
from roundfour.radical import pradical
from roundfour.runtime import CFG, trace


# --- Dedekind criterion --------------------------------------------------------

def _mod_p(f: Poly, p: int) -> Poly:
    return Poly(f.as_expr(), f.gen, modulus=p)


def _lift(g: Poly) -> Poly:
    return Poly(g.as_expr(), g.gen, domain="ZZ")


def dedekind_overorder(O: Order, p: int) -> Order:
    """
    Dedekind's criterion for the equation order Z[a] at p.

    With f = prod g_i^e_i mod p, G the lift of prod g_i, H the lift of
    f / G mod p and F = (G H - f) / p, the gcd D of F, G, H modulo p is
    trivial iff Z[a] is p-maximal. Otherwise Z[a] + U(a)/p Z[a] is a strictly
    larger order, where U lifts f / D mod p. p-maximal results are returned
    with p recorded.
    """
    K = O.field
    f = K.poly
    x = f.gen
    fp = _mod_p(f, p)

    _, factors = fp.factor_list()
    gbar = Poly(1, x, modulus=p)
    for g, _e in factors:
        gbar = gbar * g
    hbar = fp.quo(gbar)

    G, H = _lift(gbar), _lift(hbar)
    F = (G * H - f).exquo_ground(p)
    D = _mod_p(F, p).gcd(gbar).gcd(hbar)
    if D.degree() <= 0:
        trace(2, f"dedekind: equation order is {p}-maximal")
        return O.with_maximal_prime(p)

    U = _lift(fp.quo(D))
    n = K.degree
    u = [int(c) for c in reversed(U.all_coeffs())]
    u += [0] * (n - len(u))

    rows: list[list[int | Fraction]] = [list(r) for r in O.basis()]
    power = K.one()
    for _ in range(n):
        rows.append([Fraction(c, p) for c in K.mul(u, power)])
        power = K.mul(power, K.gen())

    m = int(D.degree())
    trace(2, f"dedekind: index grows by {p}^{m}")
    return Order.from_basis(
        K,
        rows,
        primes_of_maximality=O.primes_of_maximality,
        disc=O.discriminant // p ** (2 * m),
        index=O.index * p ** m,
    )


# --- Generic step -------------------------------------------------------------

def poverorder(O: Order, p: int) -> Order:
    """One enlargement step at p: O itself when O is already p-maximal."""
    if O.is_equation_order and CFG("MAXORD.USE_DEDEKIND", True):
        return dedekind_overorder(O, p)
    I = pradical(O, p)
    if I.princ_gen == p:
        return O
    return ring_of_multipliers(I)


def pmaximal_overorder(O: Order, p: int) -> Order:
    """The p-maximal overorder of O, with p recorded in primes_of_maximality."""
    if O.is_maximal or p in O.primes_of_maximality:
        return O
    d = O.discriminant
    if d % (p * p):
        return O.with_maximal_prime(p)
    OO = poverorder(O, p)
    while OO.discriminant != d:
        d = OO.discriminant
        if d % (p * p):
            break
        OO = poverorder(OO, p)
    return OO.with_maximal_prime(p)
