# src/roundfour/fmt.py
from __future__ import annotations

from collections.abc import Mapping, Sequence
from fractions import Fraction
from math import lcm

from colorama import Fore, Style

from roundfour.orders import Order


def _monomial(c: int, i: int, var: str) -> str:
    if i == 0:
        return str(c)
    power = var if i == 1 else f"{var}^{i}"
    if c == 1:
        return power
    if c == -1:
        return f"-{power}"
    return f"{c}*{power}"


def format_element(coords: Sequence[int | Fraction], var: str = "a") -> str:
    """
    Render power-basis coordinates over a common denominator,
    e.g. [1/2, 1/2] -> "(1 + a)/2".
    """
    fr = [Fraction(c) for c in coords]
    den = 1
    for c in fr:
        den = lcm(den, c.denominator)
    num = [int(c * den) for c in fr]

    terms = [_monomial(c, i, var) for i, c in enumerate(num) if c]
    if not terms:
        return "0"
    body = terms[0]
    for t in terms[1:]:
        body += f" - {t[1:]}" if t.startswith("-") else f" + {t}"
    if den == 1:
        return body
    if len(terms) > 1:
        body = f"({body})"
    return f"{body}/{den}"


def format_basis(O: Order) -> list[str]:
    var = O.field.var
    return [format_element(b, var) for b in O.basis()]


def format_factorization(fac: Mapping[int, int]) -> str:
    """
    Turn {p: e, ...} into a tidy string like: 2^3 × 3 × 5^2
    """
    parts = [f"{p}^{e}" if e > 1 else f"{p}" for p, e in sorted(fac.items())]
    return " × ".join(parts) if parts else "1"


def format_label(label: str, value: str) -> str:
    return f"{Fore.CYAN}{Style.BRIGHT}{label}:{Style.RESET_ALL} {value}"
