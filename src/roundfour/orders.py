# -----------------------------------------------------------------------------
#  orders.py
#  Orders of a number field as persistent values
# -----------------------------------------------------------------------------

"""
An Order is a full-rank subring of a NumberField, given by a Z-basis whose
rows are power-basis coordinates (QQMatrix, numerator in HNF).

Orders are never mutated. Enlargement steps return new values; knowledge such
as "p-maximal at p" travels in `primes_of_maximality` and is extended with
`with_maximal_prime`, which also returns a new value. Expensive invariants
are cached on first use in private slots that do not take part in equality.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from fractions import Fraction

from roundfour.fields import NumberField
from roundfour.linalg import QQMatrix, det_int, hnf, vec_mat
from roundfour.runtime import checks_enabled
from roundfour.utility import AlgebraicInvariantViolation

Coords = list[int]


@dataclass(frozen=True, eq=False)
class Order:
    field: NumberField
    basis_mat: QQMatrix
    primes_of_maximality: frozenset[int] = frozenset()
    is_maximal: bool | None = None  # None = unknown

    _disc: int | None = dataclasses.field(default=None, repr=False)
    _index: int | None = dataclasses.field(default=None, repr=False)
    _basis_inv: QQMatrix | None = dataclasses.field(default=None, repr=False)
    _table: tuple | None = dataclasses.field(default=None, repr=False)
    _trace_mat: tuple | None = dataclasses.field(default=None, repr=False)

    # --- construction ---------------------------------------------------

    @classmethod
    def from_basis(
        cls,
        K: NumberField,
        basis: QQMatrix | Sequence[Sequence[int | Fraction]],
        *,
        check: bool | None = None,
        primes_of_maximality: Iterable[int] = (),
        disc: int | None = None,
        index: int | None = None,
    ) -> Order:
        """
        Build an order from any basis (or generating set) of the lattice.
        The basis is normalised to HNF. With check=True (default: debug
        mode) the lattice is verified to be a ring containing 1.
        """
        B = basis if isinstance(basis, QQMatrix) else QQMatrix.from_rows(basis)
        H = hnf(B.num)
        if len(H) != K.degree:
            raise AlgebraicInvariantViolation("basis does not have full rank", rank=len(H), degree=K.degree)
        O = cls(
            K,
            QQMatrix.make(H, B.den),
            frozenset(primes_of_maximality),
            _disc=disc,
            _index=index,
        )
        if check is None:
            check = checks_enabled()
        if check:
            O.check()
        return O

    def check(self) -> None:
        """Raise AlgebraicInvariantViolation unless the basis spans a ring with 1."""
        if not self.contains(self.field.one()):
            raise AlgebraicInvariantViolation("lattice does not contain 1", basis=self.basis_mat)
        self.multiplication_table  # noqa: B018  (raises if not closed)

    def _cache(self, name: str, value):
        object.__setattr__(self, name, value)
        return value

    # --- identity -------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Order):
            return NotImplemented
        return self.field is other.field and self.basis_mat == other.basis_mat

    def __hash__(self) -> int:
        return hash((id(self.field), self.basis_mat))

    def __repr__(self) -> str:
        return f"Order(degree={self.degree}, disc={self.discriminant}, index={self.gen_index})"

    # --- persistent updates ---------------------------------------------

    def with_maximal_prime(self, p: int) -> Order:
        if p in self.primes_of_maximality:
            return self
        return replace(self, primes_of_maximality=self.primes_of_maximality | {int(p)})

    def mark_maximal(self) -> Order:
        if self.is_maximal:
            return self
        return replace(self, is_maximal=True)

    # --- basic data -----------------------------------------------------

    @property
    def degree(self) -> int:
        return self.field.degree

    @property
    def is_equation_order(self) -> bool:
        return self.basis_mat == QQMatrix.identity(self.degree)

    def basis(self) -> list[list[Fraction]]:
        """Basis elements in power-basis coordinates."""
        return self.basis_mat.rows()

    @property
    def basis_mat_inv(self) -> QQMatrix:
        if self._basis_inv is None:
            return self._cache("_basis_inv", self.basis_mat.inv())
        return self._basis_inv

    def elem_in_basis(self, x: Sequence) -> list[Fraction]:
        """Power-basis coordinates -> coordinates in this order's basis."""
        inv = self.basis_mat_inv
        return [Fraction(c, inv.den) for c in vec_mat([Fraction(t) for t in x], inv.num)]

    def contains(self, x: Sequence) -> bool:
        return all(c.denominator == 1 for c in self.elem_in_basis(x))

    @property
    def one(self) -> Coords:
        coords = self.elem_in_basis(self.field.one())
        return [int(c) for c in coords]

    @property
    def gen_index(self) -> Fraction:
        """[O : Z[a]] as a rational number (integral iff O contains a)."""
        return 1 / abs(self.basis_mat.det())

    @property
    def index(self) -> int:
        if self._index is None:
            gi = self.gen_index
            if gi.denominator != 1:
                raise AlgebraicInvariantViolation("order does not contain the equation order", gen_index=gi)
            return self._cache("_index", int(gi))
        return self._index

    # --- multiplication -------------------------------------------------

    @property
    def multiplication_table(self) -> tuple[tuple[tuple[int, ...], ...], ...]:
        """table[i][j] = coordinates of b_i * b_j."""
        if self._table is not None:
            return self._table
        B = self.basis()
        n = self.degree
        table = []
        for i in range(n):
            row = []
            for j in range(n):
                c = self.elem_in_basis(self.field.mul(B[i], B[j]))
                if any(x.denominator != 1 for x in c):
                    raise AlgebraicInvariantViolation(
                        "basis is not closed under multiplication", i=i, j=j, basis=self.basis_mat
                    )
                row.append(tuple(int(x) for x in c))
            table.append(tuple(row))
        return self._cache("_table", tuple(table))

    def mul(self, x: Sequence[int], y: Sequence[int]) -> Coords:
        T = self.multiplication_table
        n = self.degree
        out = [0] * n
        for i, xi in enumerate(x):
            if not xi:
                continue
            for j, yj in enumerate(y):
                if not yj:
                    continue
                c = xi * yj
                for k, t in enumerate(T[i][j]):
                    if t:
                        out[k] += c * t
        return out

    def representation_matrix(self, x: Sequence[int]) -> list[list[int]]:
        """Row i holds the coordinates of b_i * x, so coords(y*x) = coords(y) M."""
        T = self.multiplication_table
        n = self.degree
        M = []
        for i in range(n):
            row = [0] * n
            for j, xj in enumerate(x):
                if xj:
                    for k, t in enumerate(T[i][j]):
                        row[k] += xj * t
            M.append(row)
        return M

    def powmod(self, x: Sequence[int], e: int, p: int) -> Coords:
        """x**e with coordinates reduced mod p after every step."""
        result = [c % p for c in self.one]
        base = [int(c) % p for c in x]
        while e:
            if e & 1:
                result = [c % p for c in self.mul(result, base)]
            e >>= 1
            if e:
                base = [c % p for c in self.mul(base, base)]
        return result

    # --- trace form and discriminant ------------------------------------

    @property
    def trace_matrix(self) -> tuple[tuple[int, ...], ...]:
        if self._trace_mat is not None:
            return self._trace_mat
        traces = [self.field.trace(b) for b in self.basis()]
        if any(Fraction(t).denominator != 1 for t in traces):
            raise AlgebraicInvariantViolation("basis element with non-integral trace", traces=traces)
        traces = [int(t) for t in traces]
        T = self.multiplication_table
        n = self.degree
        M = tuple(
            tuple(sum(c * t for c, t in zip(T[i][j], traces)) for j in range(n))
            for i in range(n)
        )
        return self._cache("_trace_mat", M)

    @property
    def discriminant(self) -> int:
        if self._disc is None:
            return self._cache("_disc", det_int(self.trace_matrix))
        return self._disc

    # --- lattice of orders ----------------------------------------------

    def __add__(self, other: Order) -> Order:
        """Smallest order containing both."""
        if self.field is not other.field:
            raise ValueError("orders belong to different number fields")
        if self.is_maximal:
            return self
        if other.is_maximal:
            return other
        rows = self.basis() + other.basis()
        B = QQMatrix.from_rows(rows).hnf()
        K = self.field
        while True:
            elems = B.rows()
            prods = [K.mul(x, y) for i, x in enumerate(elems) for y in elems[i:]]
            B2 = QQMatrix.from_rows(elems + prods).hnf()
            if B2 == B:
                break
            B = B2
        return Order.from_basis(
            K, B, primes_of_maximality=self.primes_of_maximality | other.primes_of_maximality
        )


def equation_order(K: NumberField) -> Order:
    """Z[a] for the generator a of K."""
    n = K.degree
    return Order(K, QQMatrix.identity(n), _disc=K.discriminant(), _index=1)
