# src/roundfour/cli.py

"""
roundfour - maximal orders of number fields

Description:
    Computes the ring of integers of Q[x]/(f) for a monic irreducible
    integer polynomial f, starting from the equation order Z[a], and prints
    an integral basis with its discriminant and index.

usage: see roundfour -h
"""

from __future__ import annotations

import argparse
import sys
import textwrap
from tokenize import TokenError

from colorama import Fore, Style
from colorama import init as colorama_init
from sympy.parsing.sympy_parser import convert_xor, parse_expr, standard_transformations

from roundfour import __version__ as _ver
from roundfour import config as CONFIG
from roundfour.fields import NumberField
from roundfour.fmt import format_basis, format_factorization, format_label
from roundfour.maxord import ring_of_integers
from roundfour.runtime import APPLY, ensure_runtime_deps
from roundfour.runtime import current as _rt_current
from roundfour.utility import UserInputError, full_factor
from roundfour.workspace import seed_workspace, workspace_dir

_COMMANDS = ("init", "where", "profiles")


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    print(f"{Fore.RED}Error:{Style.RESET_ALL} {msg}", file=sys.stderr)


def _parse_polynomial(text: str):
    try:
        return parse_expr(text, transformations=(*standard_transformations, convert_xor))
    except (SyntaxError, TokenError, TypeError, ValueError) as e:
        raise UserInputError(f"cannot parse polynomial {text!r}: {e}") from None


def _parse_primes(text: str | None) -> list[int] | None:
    if text is None:
        return None
    primes = []
    for tok in text.replace(" ", "").split(","):
        if not tok:
            continue
        if not tok.isdigit() or int(tok) < 2:
            raise UserInputError(f"--primes expects a comma separated list of primes, got {tok!r}")
        primes.append(int(tok))
    return primes


def _signed_factorization(d: int) -> str:
    fac = full_factor(d)
    if d > 0:
        return format_factorization(fac)
    return f"-1 × {format_factorization(fac)}" if fac else "-1"


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      init
          Create the workspace and copy the packaged profiles if missing.

      init overwrite
          Copy the packaged profiles over existing workspace copies.

      profiles
          List the available profiles.

      where
          Show the workspace path.

    examples:
      roundfour "x^2 - 5"
      roundfour "x^3 - 2" --primes 2,3
      roundfour "x^4 + 1" --algorithm round-four -v
    """)

    p = argparse.ArgumentParser(
        prog="roundfour",
        description="Maximal orders of number fields (Buchmann-Lenstra / round four)",
        usage=(
            "roundfour POLYNOMIAL [--primes P,Q,...] [--profile NAME] [--algorithm ALGO] [-v] [--debug]\n"
            "       roundfour init [overwrite] | where | profiles\n"
            "       roundfour -h | --help\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="POLYNOMIAL",
                   help="monic irreducible integer polynomial, e.g. 'x^3 - x - 1'")
    p.add_argument("--primes", default=None,
                   help="only enlarge at these primes (comma separated)")
    p.add_argument("--profile", default="default", help="profile name (default: %(default)s)")
    p.add_argument("--algorithm", choices=("buchmann-lenstra", "round-four"), default=None,
                   help="override MAXORD.ALGORITHM from the profile")
    p.add_argument("-v", "--verbose", action="count", default=0, help="more diagnostics on stderr")
    p.add_argument("--debug", action="store_true", help="ring checks on every order, full tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")

    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = ("--debug" in (argv if argv is not None else sys.argv))
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


# ---- commands ----
def _run_command(cmd: str, rest: list[str]) -> int:
    if cmd == "init":
        overwrite = rest[:1] == ["overwrite"]
        ws, copied = seed_workspace(overwrite=overwrite)
        suffix = " (overwrote existing files)" if overwrite else ""
        print(f"Workspace ready at: {ws}{suffix}")
        print(f"Copied -> profiles: {copied.get('profiles', 0)}")
        return 0
    if cmd == "where":
        print(f"Workspace: {workspace_dir()}")
        return 0
    for name in CONFIG.list_profiles():
        print(name)
    return 0


def _apply_profile(args) -> None:
    if not CONFIG.has_profile(args.profile):
        raise UserInputError(
            f"unknown profile {args.profile!r}; available: {', '.join(CONFIG.list_profiles())}"
        )
    APPLY(CONFIG.load_settings(args.profile))

    rt = _rt_current()
    if args.debug:
        rt.debug = True
    rt.verbosity = max(rt.verbosity, int(args.verbose))
    if args.algorithm:
        maxord = {**rt.settings.get("MAXORD", {}), "ALGORITHM": args.algorithm}
        rt.settings = {**rt.settings, "MAXORD": maxord}
    if rt.debug:
        print(f"[debug] active profile: {rt.profile_name}", file=sys.stderr)


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)

    if not ensure_runtime_deps(strict=True):
        return 1

    if not args.items:
        parser.print_usage()
        return 2
    if args.items[0] in _COMMANDS:
        return _run_command(args.items[0], args.items[1:])
    if len(args.items) > 1:
        raise UserInputError("expected exactly one polynomial (quote it if it contains spaces)")

    _apply_profile(args)
    primes = _parse_primes(args.primes)

    K = NumberField(_parse_polynomial(args.items[0]))
    O = ring_of_integers(K, primes)

    title = "Maximal order" if primes is None else f"Order maximal at {', '.join(map(str, primes))}"
    print(format_label("Field", f"Q({K.var}) where {K.var} is a root of {K.poly.as_expr()}"))
    print(format_label("Polynomial discriminant", str(K.discriminant())))
    print(format_label(title, ", ".join(format_basis(O))))
    print(format_label("Discriminant", f"{Fore.GREEN}{O.discriminant}{Style.RESET_ALL}"))
    print(format_label("Discriminant factorization", _signed_factorization(O.discriminant)))
    print(format_label(f"Index over Z[{K.var}]", str(O.index)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
