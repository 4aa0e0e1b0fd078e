"""
Delimited-text tokenizer.

Splits raw export text into rows of string fields. Handles quoted fields
with embedded delimiters, doubled quotes and line breaks, and accepts
LF, CR and CRLF line endings (mixed within one file). It has no notion of
headers or column meaning.
"""

from __future__ import annotations

_QUOTE = '"'


def tokenize(text: str, delimiter: str = ",") -> list[list[str]]:
    """
    Tokenize ``text`` in a single forward pass.

    Every line yields a row with one more field than it has (unquoted)
    delimiters. Blank lines yield ``[""]``; only an empty last line, the
    one after a trailing line break, is dropped. Malformed quoting never
    raises: a stray quote after a closed quoted field is kept literally and
    an unterminated quote runs to the end of input.
    """
    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    at_field_start = True
    line_open = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if in_quotes:
            if ch == _QUOTE:
                if i + 1 < n and text[i + 1] == _QUOTE:
                    field.append(_QUOTE)
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(ch)
            i += 1
            continue

        line_open = True
        if ch == _QUOTE and at_field_start:
            in_quotes = True
            at_field_start = False
        elif ch == delimiter:
            row.append("".join(field))
            field = []
            at_field_start = True
        elif ch == "\r" or ch == "\n":
            row.append("".join(field))
            rows.append(row)
            row, field = [], []
            at_field_start = True
            line_open = False
            if ch == "\r" and i + 1 < n and text[i + 1] == "\n":
                i += 1
        else:
            field.append(ch)
            at_field_start = False
        i += 1

    if line_open:
        row.append("".join(field))
        rows.append(row)

    return rows
