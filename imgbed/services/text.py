from __future__ import annotations

import html
import mimetypes
import re
import secrets
import string


_ALPHABET = string.ascii_letters + string.digits
_SLASHES_RE = re.compile(r"/+")


def random_token(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def sanitize_path(raw: str | None) -> str:
    """Normalise a user-supplied folder path to ``a/b/c`` form ('' is the root)."""
    txt = _SLASHES_RE.sub("/", str(raw or "").replace("\\", "/").strip())
    segments = [seg.strip() for seg in txt.split("/")]
    return "/".join(seg for seg in segments if seg and seg not in {".", ".."})


def file_extension(file_name: str | None, content_type: str | None = None) -> str:
    name = str(file_name or "")
    if "." in name:
        ext = name.rsplit(".", 1)[1].strip()
        if ext and "/" not in ext:
            return "." + ext
    if content_type:
        return mimetypes.guess_extension(content_type) or ""
    return ""


def strip_extension(name: str) -> str:
    if "." not in name:
        return name
    return name[: name.rindex(".")]


def escape_html(value: str) -> str:
    return html.escape(str(value or ""), quote=True)
