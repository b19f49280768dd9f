"""Argument quoting for MPD command lines."""

from __future__ import annotations

from typing import Iterable


def quote(arg: str) -> str:
    """Quote a single argument.

    Backslash, double quote and single quote are escaped with a backslash.
    Single quotes do not strictly need it, but nothing here ever sends
    arguments in the unquoted mode, so all three get the same treatment.
    """
    escaped = arg.replace("\\", "\\\\").replace('"', '\\"').replace("'", "\\'")
    return f'"{escaped}"'


def quote_args(args: Iterable[str]) -> str:
    """Quote every argument and join them with single spaces."""
    return " ".join(quote(str(arg)) for arg in args)


def split_args(line: str) -> list[str]:
    """Split a command line into its unescaped tokens.

    Accepts both quoted tokens and bare words, so it reads back anything
    produced by :func:`quote_args` as well as hand-typed commands.
    """
    tokens: list[str] = []
    i, n = 0, len(line)

    while i < n:
        if line[i] == " ":
            i += 1
            continue

        if line[i] != '"':
            end = line.find(" ", i)
            if end < 0:
                end = n
            tokens.append(line[i:end])
            i = end
            continue

        i += 1
        chars = []
        while True:
            if i >= n:
                raise ValueError(f"unterminated quote in {line!r}")
            ch = line[i]
            if ch == "\\":
                if i + 1 >= n:
                    raise ValueError(f"dangling escape in {line!r}")
                chars.append(line[i + 1])
                i += 2
            elif ch == '"':
                i += 1
                break
            else:
                chars.append(ch)
                i += 1
        tokens.append("".join(chars))

    return tokens
