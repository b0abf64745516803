"""Upload Naming — collision-free scratch names from untrusted client filenames.

Invariants:
    - Output never contains a path separator, a parent-directory reference, or a NUL byte
    - Scratch names are "<32 hex chars>-<sanitized basename>" and fit in 255 bytes
    - The token is the caller's responsibility (secrets.token_hex), so this stays pure

Design Decisions:
    - Both "/" and "\\" treated as separators regardless of host OS: clients upload
      from Windows and POSIX alike
"""

import re

FALLBACK_BASENAME = "upload"
MAX_BASENAME_CHARS = 200

_UNSAFE_CHARS = re.compile(r"[^\w\s.()\[\]+-]", re.ASCII)
_WHITESPACE_RUN = re.compile(r"\s+", re.ASCII)


def sanitize_basename(filename: str | None) -> str:
    """Reduce a client filename to a safe single path component.

    >>> sanitize_basename("../../etc/passwd")
    'passwd'
    >>> sanitize_basename("deal memo (v2).pdf")
    'deal_memo_(v2).pdf'
    """
    if not filename:
        return FALLBACK_BASENAME
    name = re.split(r"[\\/]", filename)[-1]
    name = "".join(c for c in name if ord(c) >= 32)
    name = _UNSAFE_CHARS.sub("_", name)
    name = _WHITESPACE_RUN.sub("_", name.strip())
    name = name.lstrip(".")
    if not name:
        return FALLBACK_BASENAME
    if len(name) > MAX_BASENAME_CHARS:
        stem, dot, ext = name.rpartition(".")
        if dot and 0 < len(ext) < 16:
            name = stem[: MAX_BASENAME_CHARS - len(ext) - 1] + "." + ext
        else:
            name = name[:MAX_BASENAME_CHARS]
    return name


def build_scratch_name(token: str, filename: str | None) -> str:
    """Combine a random token with the sanitized basename."""
    return f"{token}-{sanitize_basename(filename)}"


def display_name_for(original_filename: str | None, requested_name: str | None) -> str:
    """Name shown in the room: explicit name wins, then the client filename."""
    if requested_name and requested_name.strip():
        return requested_name.strip()
    if original_filename and original_filename.strip():
        return original_filename.strip()
    return FALLBACK_BASENAME
