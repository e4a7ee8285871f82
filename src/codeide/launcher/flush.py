"""Best-effort insertion of flush calls into C and C++ sources.

Programs whose stdout is a pipe fully buffer their output, so a prompt
printed before ``scanf`` would not reach the client until the buffer fills
or the program exits.  Appending an explicit flush to every recognised
output statement makes the program feel interactive.

This is a textual rewrite driven by regular expressions, not a parser.  A
call is only rewritten when it forms a whole statement: it must start a
line or follow ``;``, ``{``, ``}``, ``)`` or ``else``, and be followed by
``;``.  Calls used as values (``int n = printf(...)``,
``return printf(...)``) are left alone.  Calls that contain ``;`` inside a
string literal or comment are not recognised.  The rewritten program
behaves exactly like the original apart from output timing.

The flush is joined with a comma operator (``printf(...), fflush(stdout);``)
so a statement that is the body of an unbraced ``if``/``else`` or loop stays
a single statement.
"""

from __future__ import annotations

import re


C_FLUSH = "fflush(stdout)"
CPP_FLUSH = "std::cout.flush()"

# Start of a statement: beginning of a line, or right after a statement
# terminator, a block delimiter, a control-statement condition or ``else``.
_STATEMENT_START = r"(?:^|(?<=[;{})])|(?<=\belse))([ \t\r\n]*)"

# printf/puts/putchar but not fprintf/sprintf/snprintf.
_C_OUTPUT = re.compile(
    _STATEMENT_START + r"((?:std\s*::\s*)?(?:printf|puts|putchar)\s*\([^;]*\))\s*;",
    re.MULTILINE,
)
_CPP_OUTPUT = re.compile(
    _STATEMENT_START + r"((?:std\s*::\s*)?cout\s*<<[^;]*?)\s*;",
    re.MULTILINE,
)


def _append_flush(pattern: re.Pattern, flush: str, source: str) -> str:
    return pattern.sub(lambda match: f"{match.group(1)}{match.group(2)}, {flush};", source)


def add_flush_calls(source: str, language: str) -> str:
    """Return ``source`` with flush calls added to output statements.

    Only ``c`` and ``cpp`` are rewritten; any other language is returned
    unchanged.
    """
    if language == "c":
        return _append_flush(_C_OUTPUT, C_FLUSH, source)
    if language == "cpp":
        source = _append_flush(_C_OUTPUT, C_FLUSH, source)
        return _append_flush(_CPP_OUTPUT, CPP_FLUSH, source)
    return source
