# -----------------------------------------------------------------------------
#  multipliers.py
#  Ring of multipliers of an ideal
# -----------------------------------------------------------------------------

from __future__ import annotations

from roundfour.ideals import Ideal
from roundfour.linalg import QQMatrix, hnf_modular_eldiv, mat_mul, transpose
from roundfour.orders import Order
from roundfour.runtime import trace
from roundfour.utility import AlgebraicInvariantViolation


def ring_of_multipliers(I: Ideal) -> Order:
    """
    {x in K : x I ⊆ I} as an order containing I.order.

    x (in coordinates y of O) multiplies I into itself iff y Rep(b) B^-1 is
    integral for every generator b of I. The admissible y form the dual of
    the lattice spanned by the columns of all Rep(b) B^-1, and that lattice
    contains min(I) Z^n, so its HNF can be taken modulo min(I).
    """
    O = I.order
    n = O.degree
    if I.gens is not None and len(I.gens) < n:
        gens = [list(g) for g in I.gens]
    else:
        if not I.is_integral:
            raise AlgebraicInvariantViolation("ring of multipliers needs an integral ideal", ideal=I)
        gens = [list(r) for r in I.basis_mat.num]

    inv = I.basis_mat_inv
    stacked: list[list[int]] = []
    for b in gens:
        M = mat_mul(O.representation_matrix(b), inv.num)
        rows = []
        for row in M:
            if any(x % inv.den for x in row):
                raise AlgebraicInvariantViolation("O * b is not contained in the ideal", generator=b)
            rows.append([x // inv.den for x in row])
        stacked.extend(transpose(rows))

    m = I.minimum
    if m.denominator != 1:
        raise AlgebraicInvariantViolation("ideal minimum is not integral", minimum=m)
    H = hnf_modular_eldiv(stacked, int(m))

    s = 1
    for i in range(n):
        s *= H[i][i]
    if s == 1:
        return O

    in_O = QQMatrix.make(H).inv().transpose()
    trace(2, f"ring of multipliers: index grows by {s}")
    disc = O._disc // (s * s) if O._disc is not None else None
    index = O._index * s if O._index is not None else None
    return Order.from_basis(
        O.field,
        in_O * O.basis_mat,
        primes_of_maximality=O.primes_of_maximality,
        disc=disc,
        index=index,
    )
