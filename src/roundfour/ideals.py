# -----------------------------------------------------------------------------
#  ideals.py
#  Fractional ideals of an order, as lattices in order coordinates
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from dataclasses import dataclass
from fractions import Fraction
from math import gcd

from roundfour.linalg import QQMatrix, hnf, hnf_modular_eldiv, vec_mat
from roundfour.orders import Order
from roundfour.utility import AlgebraicInvariantViolation, valuation

Coords = tuple[int, ...]


@dataclass(frozen=True, eq=False)
class Ideal:
    """
    A fractional ideal of `order`. `basis_mat` rows are a Z-basis in the
    coordinates of the order's basis (numerator in HNF).

    `gens` is an optional short list of O-ideal generators (integral ideals
    only); `princ_gen` records an integer generator when the ideal is known
    to be a*O.
    """
    order: Order
    basis_mat: QQMatrix
    gens: tuple[Coords, ...] | None = None
    princ_gen: int | None = None

    _basis_inv: QQMatrix | None = dataclasses.field(default=None, repr=False)

    # --- construction ---------------------------------------------------

    @classmethod
    def from_basis(
        cls,
        O: Order,
        basis: QQMatrix | Sequence[Sequence[int | Fraction]],
        *,
        modulus: int | None = None,
        gens: Sequence[Sequence[int]] | None = None,
        princ_gen: int | None = None,
    ) -> Ideal:
        """
        Ideal spanned by the rows of `basis` (a generating set is fine).
        `modulus` asserts that modulus*O lies inside and enables modular HNF.
        """
        B = basis if isinstance(basis, QQMatrix) else QQMatrix.from_rows(basis)
        if modulus is not None and B.den == 1:
            H = hnf_modular_eldiv(B.num, modulus)
        else:
            H = hnf(B.num)
        if len(H) != O.degree:
            raise AlgebraicInvariantViolation("ideal basis does not have full rank", rank=len(H))
        g = tuple(tuple(int(c) for c in v) for v in gens) if gens is not None else None
        return cls(O, QQMatrix.make(H, B.den), gens=g, princ_gen=princ_gen)

    @classmethod
    def principal(cls, O: Order, a: int) -> Ideal:
        """a*O for a nonzero integer a."""
        a = int(a)
        n = O.degree
        B = QQMatrix.make([[abs(a) if i == j else 0 for j in range(n)] for i in range(n)])
        return cls(O, B, gens=(tuple(a * c for c in O.one),), princ_gen=a)

    # --- identity -------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ideal):
            return NotImplemented
        return self.order == other.order and self.basis_mat == other.basis_mat

    def __hash__(self) -> int:
        return hash((self.order, self.basis_mat))

    def __repr__(self) -> str:
        return f"Ideal(norm={self.norm}, basis={[list(r) for r in self.basis_mat.num]}, den={self.basis_mat.den})"

    # --- invariants -----------------------------------------------------

    @property
    def is_integral(self) -> bool:
        return self.basis_mat.den == 1

    @property
    def basis_mat_inv(self) -> QQMatrix:
        if self._basis_inv is None:
            inv = self.basis_mat.inv()
            object.__setattr__(self, "_basis_inv", inv)
            return inv
        return self._basis_inv

    @property
    def norm(self) -> Fraction:
        return abs(self.basis_mat.det())

    @property
    def minimum(self) -> Fraction:
        """Positive generator of the Z-module I ∩ Q."""
        inv = self.basis_mat_inv
        w = vec_mat(self.order.one, inv.num)  # one . B^-1 = w / inv.den
        g = 0
        for c in w:
            g = gcd(g, c)
        return Fraction(inv.den, g)

    def contains(self, x: Sequence[int | Fraction]) -> bool:
        """Membership of an element given in order coordinates."""
        inv = self.basis_mat_inv
        return all(Fraction(c, inv.den).denominator == 1 for c in vec_mat(x, inv.num))

    def is_subset(self, other: Ideal) -> bool:
        return (self.basis_mat * other.basis_mat_inv).is_integral

    def valuation(self, p: int) -> int:
        """Largest k with I contained in p^k O (may be negative for fractional I)."""
        v = min(valuation(x, p) for row in self.basis_mat.num for x in row if x)
        return v - valuation(self.basis_mat.den, p)

    # --- generators -----------------------------------------------------

    def _generators(self) -> tuple[list[list[int]], int]:
        """O-ideal generators as integer coordinate rows plus a common denominator."""
        if self.gens is not None:
            return [list(g) for g in self.gens], 1
        return [list(r) for r in self.basis_mat.num], self.basis_mat.den

    # --- arithmetic -----------------------------------------------------

    def __add__(self, other: Ideal) -> Ideal:
        self._same_order(other)
        rows = self.basis_mat.rows() + other.basis_mat.rows()
        gens = None
        if self.gens is not None and other.gens is not None:
            gens = self.gens + other.gens
        return Ideal.from_basis(self.order, rows, gens=gens)

    def __mul__(self, other: Ideal) -> Ideal:
        self._same_order(other)
        O = self.order
        n = O.degree
        left, dl = self._generators()
        zbasis = [list(r) for r in other.basis_mat.num]
        prods = [O.mul(x, y) for x in left for y in zbasis]
        den = dl * other.basis_mat.den

        gens = None
        if self.gens is not None and other.gens is not None and len(self.gens) * len(other.gens) < n + 2:
            gens = [O.mul(x, y) for x in self.gens for y in other.gens]
        princ = None
        if self.princ_gen is not None and other.princ_gen is not None:
            princ = self.princ_gen * other.princ_gen

        if den == 1:
            m = self.minimum * other.minimum
            return Ideal.from_basis(O, prods, modulus=int(m), gens=gens, princ_gen=princ)
        return Ideal.from_basis(O, QQMatrix.make(prods, den), princ_gen=princ)

    def __pow__(self, k: int) -> Ideal:
        if k < 0:
            raise ValueError("negative ideal powers are not supported")
        result = Ideal.principal(self.order, 1)
        for _ in range(k):
            result = result * self
        return result

    def colon(self, other: Ideal) -> Ideal:
        """(I : J) = {x in K : x J ⊆ I}."""
        self._same_order(other)
        O = self.order
        inv = self.basis_mat_inv
        gens, den = other._generators()
        rows: list[list[Fraction]] = []
        for g in gens:
            N = QQMatrix.make(O.representation_matrix(g), den) * inv
            rows.extend(N.transpose().rows())
        L = QQMatrix.from_rows(rows).hnf()
        if L.nrows != O.degree:
            raise AlgebraicInvariantViolation("colon of a zero ideal", other=other)
        return Ideal.from_basis(O, L.inv().transpose())

    def _same_order(self, other: Ideal) -> None:
        if self.order != other.order:
            raise ValueError("ideals belong to different orders")
