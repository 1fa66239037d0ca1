from __future__ import annotations

from imgbed.models.app_settings import CopyFormat
from imgbed.services.text import escape_html


COPY_FORMATS: tuple[CopyFormat, ...] = ("url", "markdown", "html", "bbcode")


def format_link(url: str, file_name: str, fmt: str) -> str:
    if fmt == "markdown":
        return f"![{escape_html(file_name)}]({url})"
    if fmt == "html":
        return f'<img src="{url}" alt="{escape_html(file_name)}" />'
    if fmt == "bbcode":
        return f"[img]{url}[/img]"
    return url


def all_links(url: str, file_name: str) -> dict[str, str]:
    return {fmt: format_link(url, file_name, fmt) for fmt in COPY_FORMATS}
