"""Token syntax shared by the expander, the rules and the analyzers.

A token is ``%name%`` where ``name`` is any run of characters other than ``%``.
``%@name%`` is a back-reference to a value already resolved in the current
parse. There is no escape for a literal ``%``.
"""

import re

TOKEN_PATTERN = re.compile(r"%([^%]+)%")
BACK_REFERENCE_PREFIX = "@"


def find_variables(text: str) -> list[str]:
    """Return unique token names in order of first appearance.

    Back-reference names keep their ``@`` prefix.
    """
    seen: dict[str, None] = {}
    for match in TOKEN_PATTERN.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)


def split_tokens(text: str) -> list[tuple[str, bool]]:
    """Split text into (segment, is_token) pairs.

    Token segments hold the bare name, literal segments the raw text.
    Empty literals are dropped.
    """
    segments = []
    last = 0
    for match in TOKEN_PATTERN.finditer(text):
        if match.start() > last:
            segments.append((text[last:match.start()], False))
        segments.append((match.group(1), True))
        last = match.end()
    if last < len(text):
        segments.append((text[last:], False))
    return segments


def is_back_reference(name: str) -> bool:
    return name.startswith(BACK_REFERENCE_PREFIX)


def strip_back_reference(name: str) -> str:
    return name[len(BACK_REFERENCE_PREFIX):] if is_back_reference(name) else name


def token(name: str) -> str:
    """Render a name back into token form."""
    return f"%{name}%"
