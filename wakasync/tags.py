"""Bracketed identifier tags embedded in remote free-text fields.

Remote projects and entries are named ``[<identifier>] <display name>``.
Reading the tag back lets a later run recognise what it already exported.
"""

import re

_TAG_RE = re.compile(r"\[([^\]]+)\]")


def format_tag(identifier: str, name: str) -> str:
    return f"[{identifier}] {name}"


def parse_tag(text: str | None) -> tuple[str, str] | None:
    """Return ``(identifier, name)`` for the first ``[...]`` group in ``text``.

    Text without a (non-blank) tag is unmanaged and yields None.
    """
    if not text:
        return None
    match = _TAG_RE.search(text)
    if match is None:
        return None
    identifier = match.group(1).strip()
    if not identifier:
        return None

    before = text[: match.start()]
    after = text[match.end():]
    if not before:
        name = after[1:] if after.startswith(" ") else after
    else:
        name = f"{before.strip()} {after.strip()}".strip()
    return identifier, name
