"""Canonicalize locale-ambiguous number tokens such as ``1.234,56`` or ``3,49``.

The output is a plain decimal string with thousands separators removed and a
single ``.`` as decimal point, e.g. ``"1234.56"``. An empty string means the
token held nothing parseable.
"""
from __future__ import annotations

import re

_NON_NUMERIC = re.compile(r"[^0-9.,]")
_LEADING_ZEROS = re.compile(r"0+\d")


def normalize_number_token(token: str) -> str:
    t = "".join(str(token).split())
    t = _NON_NUMERIC.sub("", t)
    if not t:
        return ""

    if "." in t and "," in t:
        # Whichever separator appears last is the decimal point
        dec_sep = "." if t.rfind(".") > t.rfind(",") else ","
        thou_sep = "," if dec_sep == "." else "."
        t = t.replace(thou_sep, "")
        idx = t.rfind(dec_sep)
        t = t[:idx] + "." + t[idx + 1:]
    else:
        t = t.replace(",", ".")
        parts = t.split(".")
        if len(parts) > 2:
            fraction = parts.pop()
            t = "".join(parts) + "." + fraction

    if _LEADING_ZEROS.match(t) and not t.startswith("0."):
        t = t.lstrip("0")

    # Separator-only tokens ("..", ",") collapse to a bare point
    if not any(ch.isdigit() for ch in t):
        return ""
    return t
