# -----------------------------------------------------------------------------
#  linalg.py
#  Exact integer / rational / modular linear algebra on plain Python ints
# -----------------------------------------------------------------------------

"""
Row-style conventions throughout: a matrix is a list of rows, a lattice is
the Z-span of the rows, and a vector times a matrix is `vec_mat(v, M)`.

Hermite normal forms are upper triangular with positive pivots and the
entries above each pivot reduced into [0, pivot).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from fractions import Fraction
from math import gcd, lcm

import gmpy2
from sympy import Matrix

IntMatrix = list[list[int]]


# --- Small helpers -------------------------------------------------------------

def identity(n: int) -> IntMatrix:
    return [[1 if i == j else 0 for j in range(n)] for i in range(n)]


def transpose(M: Sequence[Sequence]) -> list[list]:
    if not M:
        return []
    return [list(col) for col in zip(*M)]


def mat_mul(A: Sequence[Sequence], B: Sequence[Sequence]) -> list[list]:
    Bt = transpose(B)
    return [[sum(a * b for a, b in zip(row, col)) for col in Bt] for row in A]


def vec_mat(v: Sequence, M: Sequence[Sequence]) -> list:
    """Row vector times matrix."""
    n = len(M[0]) if M else 0
    out = [0] * n
    for c, row in zip(v, M):
        if c:
            for j in range(n):
                out[j] += c * row[j]
    return out


def is_diagonal(M: Sequence[Sequence[int]]) -> bool:
    return all(M[i][j] == 0 for i in range(len(M)) for j in range(len(M[i])) if i != j)


def det_int(M: Sequence[Sequence[int]]) -> int:
    if not M:
        return 1
    return int(Matrix([list(r) for r in M]).det(method="bareiss"))


# --- Rational matrices -----------------------------------------------------------

@dataclass(frozen=True)
class QQMatrix:
    """
    Rational matrix stored as integer numerator and positive denominator,
    kept in lowest terms. Hashable so it can key caches and compare orders.
    """
    num: tuple[tuple[int, ...], ...]
    den: int = 1

    @classmethod
    def make(cls, num: Sequence[Sequence[int]], den: int = 1) -> QQMatrix:
        if den == 0:
            raise ZeroDivisionError("QQMatrix denominator is zero")
        if den < 0:
            num = [[-x for x in row] for row in num]
            den = -den
        g = den
        for row in num:
            for x in row:
                g = gcd(g, x)
                if g == 1:
                    break
        if g > 1:
            num = [[x // g for x in row] for row in num]
            den //= g
        return cls(tuple(tuple(int(x) for x in row) for row in num), int(den))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int | Fraction]]) -> QQMatrix:
        den = 1
        for row in rows:
            for x in row:
                den = lcm(den, Fraction(x).denominator)
        num = [[int(Fraction(x) * den) for x in row] for row in rows]
        return cls.make(num, den)

    @classmethod
    def identity(cls, n: int) -> QQMatrix:
        return cls.make(identity(n), 1)

    @property
    def nrows(self) -> int:
        return len(self.num)

    @property
    def ncols(self) -> int:
        return len(self.num[0]) if self.num else 0

    @property
    def is_integral(self) -> bool:
        return self.den == 1

    def rows(self) -> list[list[Fraction]]:
        return [[Fraction(x, self.den) for x in row] for row in self.num]

    def __mul__(self, other: QQMatrix) -> QQMatrix:
        return QQMatrix.make(mat_mul(self.num, other.num), self.den * other.den)

    def transpose(self) -> QQMatrix:
        return QQMatrix.make(transpose(self.num), self.den)

    def det(self) -> Fraction:
        return Fraction(det_int(self.num), self.den ** self.nrows)

    def inv(self) -> QQMatrix:
        """Exact inverse via sympy; (N/d)^-1 = d * N^-1."""
        inv = Matrix([list(r) for r in self.num]).inv()
        rows = [[Fraction(int(x.p), int(x.q)) * self.den for x in row] for row in inv.tolist()]
        return QQMatrix.from_rows(rows)

    def hnf(self) -> QQMatrix:
        return QQMatrix.make(hnf(self.num), self.den)


# --- Hermite normal form -------------------------------------------------------------

def hnf(rows: Sequence[Sequence[int]]) -> IntMatrix:
    """
    Row HNF of an integer matrix; zero rows are dropped, so the result has
    rank(rows) rows.
    """
    A = [[int(x) for x in r] for r in rows]
    m = len(A)
    n = len(A[0]) if A else 0
    r = 0
    for c in range(n):
        if r == m:
            break
        for i in range(r + 1, m):
            b = A[i][c]
            if b == 0:
                continue
            a = A[r][c]
            g, s, t = (int(x) for x in gmpy2.gcdext(a, b))
            u, v = a // g, b // g
            top, bot = A[r], A[i]
            A[r] = [s * x + t * y for x, y in zip(top, bot)]
            A[i] = [u * y - v * x for x, y in zip(top, bot)]
        p = A[r][c]
        if p == 0:
            continue
        if p < 0:
            A[r] = [-x for x in A[r]]
            p = -p
        for i in range(r):
            q = A[i][c] // p
            if q:
                A[i] = [x - q * y for x, y in zip(A[i], A[r])]
        r += 1
    return A[:r]


def hnf_modular_eldiv(rows: Sequence[Sequence[int]], d: int) -> IntMatrix:
    """
    HNF of the lattice spanned by `rows` together with d*Z^n. The result is
    square, and every pivot divides d.
    """
    d = abs(int(d))
    n = len(rows[0]) if rows else 0
    reduced = [[int(x) % d for x in r] for r in rows]
    scaled = [[d if i == j else 0 for j in range(n)] for i in range(n)]
    return hnf(reduced + scaled)


def divisors(M: Sequence[Sequence[int]], d: int) -> list[int]:
    """
    Nontrivial divisors of d visible in M: the pivots different from 1 of the
    HNF of rowspace(M) + d*Z^n. Empty iff M is invertible modulo d.
    """
    H = hnf_modular_eldiv(M, d)
    return [H[i][i] for i in range(len(H)) if H[i][i] != 1]


def elementary_divisors(M: Sequence[Sequence[int]]) -> list[int]:
    """Smith invariants of a nonsingular square integer matrix, ascending."""
    A = hnf(M)
    while not is_diagonal(A):
        A = hnf(transpose(A))
    diag = [abs(A[i][i]) for i in range(min(len(A), len(A[0]) if A else 0))]
    k = len(diag)
    for i in range(k):
        for j in range(i + 1, k):
            g = gcd(diag[i], diag[j])
            if g:
                diag[i], diag[j] = g, diag[i] * diag[j] // g
    return diag


# --- Kernels modulo q --------------------------------------------------------------

def right_kernel_mod(A: Sequence[Sequence[int]], q: int) -> tuple[int, IntMatrix]:
    """
    Basis of {x : A x = 0 mod q} over Z/qZ.

    Elimination only ever divides by units. If it meets a nonzero non-unit
    entry, g = gcd(entry, q) is a proper divisor of q and (g, []) is
    returned. Otherwise returns (1, basis) with entries in [0, q); the basis
    is free, with a 1 in each free column.
    """
    rows = [[int(x) % q for x in r] for r in A]
    m = len(rows)
    n = len(rows[0]) if rows else 0
    pivots: list[int] = []
    r = 0
    for c in range(n):
        if r == m:
            break
        piv = None
        for i in range(r, m):
            a = rows[i][c]
            if a == 0:
                continue
            g = gcd(a, q)
            if g != 1:
                return g, []
            piv = i
            break
        if piv is None:
            continue
        rows[r], rows[piv] = rows[piv], rows[r]
        inv = int(gmpy2.invert(rows[r][c], q))
        rows[r] = [(x * inv) % q for x in rows[r]]
        for i in range(m):
            if i != r and rows[i][c]:
                f = rows[i][c]
                rows[i] = [(x - f * y) % q for x, y in zip(rows[i], rows[r])]
        pivots.append(c)
        r += 1

    free = [c for c in range(n) if c not in pivots]
    basis: IntMatrix = []
    for f in free:
        v = [0] * n
        v[f] = 1
        for i, pc in enumerate(pivots):
            v[pc] = (-rows[i][f]) % q
        basis.append(v)
    return 1, basis


def left_kernel_mod(A: Sequence[Sequence[int]], q: int) -> tuple[int, IntMatrix]:
    """Basis of {x : x A = 0 mod q}; same split convention as right_kernel_mod."""
    return right_kernel_mod(transpose(A), q)
