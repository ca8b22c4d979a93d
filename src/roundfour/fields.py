# -----------------------------------------------------------------------------
#  fields.py
#  Number fields Q[x]/(f) for monic irreducible integer f
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import Sequence
from fractions import Fraction

from sympy import Poly, Symbol, sympify
from sympy.polys.polyerrors import GeneratorsNeeded, PolynomialError

from roundfour.utility import UserInputError

Vector = list[Fraction | int]


def _as_poly(poly) -> Poly:
    if isinstance(poly, Poly):
        return poly
    if isinstance(poly, (list, tuple)):
        return Poly([int(c) for c in poly], Symbol("x"))
    expr = sympify(poly)
    try:
        return Poly(expr)
    except (GeneratorsNeeded, PolynomialError):
        raise UserInputError(f"not a univariate polynomial: {poly!r}") from None


class NumberField:
    """
    K = Q(a) with a a root of the monic irreducible integer polynomial f.
    Elements are coordinate vectors in the power basis 1, a, ..., a^(n-1).

    Fields compare by identity: two fields built from the same polynomial
    are distinct objects with distinct maximal-order cache entries.
    """

    def __init__(self, poly, var: str = "a"):
        f = _as_poly(poly)
        if len(f.gens) != 1:
            raise UserInputError(f"expected a univariate polynomial, got {f.as_expr()}")
        coeffs = f.all_coeffs()
        if not all(getattr(c, "is_integer", False) for c in coeffs):
            raise UserInputError(f"polynomial {f.as_expr()} does not have integer coefficients")
        if f.degree() < 1:
            raise UserInputError(f"polynomial {f.as_expr()} is constant")
        if coeffs[0] != 1:
            raise UserInputError(f"polynomial {f.as_expr()} is not monic")
        f = Poly(f.as_expr(), f.gen, domain="ZZ")
        if not f.is_irreducible:
            raise UserInputError(f"polynomial {f.as_expr()} is reducible over Q")

        self.poly = f
        self.var = var
        self.degree = int(f.degree())
        # c_0, ..., c_n (lowest degree first)
        self._low = [int(c) for c in reversed(f.all_coeffs())]
        self._powers = self._compute_powers()
        self._traces = self._compute_power_traces()

    def __repr__(self) -> str:
        return f"NumberField({self.poly.as_expr()}, var={self.var!r})"

    # --- power basis -----------------------------------------------------

    def _compute_powers(self) -> list[list[int]]:
        """Coordinates of a^m for m = 0 .. 2n-2."""
        n = self.degree
        top = [-c for c in self._low[:n]]  # a^n
        powers = []
        for m in range(n):
            v = [0] * n
            v[m] = 1
            powers.append(v)
        for _ in range(n, 2 * n - 1):
            prev = powers[-1]
            shifted = [0, *prev[:-1]]
            lead = prev[-1]
            powers.append([s + lead * t for s, t in zip(shifted, top)])
        return powers

    def _compute_power_traces(self) -> list[int]:
        """Tr(a^k) for k = 0 .. n-1, read off the multiplication-by-a^k matrices."""
        n = self.degree
        return [sum(self._powers[k + j][j] for j in range(n)) for k in range(n)]

    def one(self) -> Vector:
        return [1] + [0] * (self.degree - 1)

    def gen(self) -> Vector:
        v = [0] * self.degree
        if self.degree == 1:
            v[0] = -self._low[0]
        else:
            v[1] = 1
        return v

    # --- arithmetic ------------------------------------------------------

    def mul(self, x: Sequence, y: Sequence) -> Vector:
        n = self.degree
        conv = [0] * (2 * n - 1)
        for i, xi in enumerate(x):
            if xi:
                for j, yj in enumerate(y):
                    if yj:
                        conv[i + j] += xi * yj
        out = list(conv[:n])
        for m in range(n, 2 * n - 1):
            c = conv[m]
            if c:
                for k, t in enumerate(self._powers[m]):
                    out[k] += c * t
        return out

    def trace(self, x: Sequence) -> Fraction | int:
        return sum(xi * t for xi, t in zip(x, self._traces))

    def discriminant(self) -> int:
        """Discriminant of the defining polynomial (= disc of the equation order)."""
        return int(self.poly.discriminant())
