from imgbed.services.links import all_links, format_link
from imgbed.services.text import file_extension, random_token, sanitize_path, strip_extension


def test_sanitize_path_normalizes_separators() -> None:
    assert sanitize_path("  /holiday//2024/ ") == "holiday/2024"
    assert sanitize_path("a\\b") == "a/b"
    assert sanitize_path("../a/./b/..") == "a/b"
    assert sanitize_path(None) == ""
    assert sanitize_path("///") == ""


def test_file_extension_prefers_file_name() -> None:
    assert file_extension("cat.photo.JPG", "image/png") == ".JPG"
    assert file_extension("noext", "image/png") == ".png"
    assert file_extension("", None) == ""
    assert strip_extension("abc123.png") == "abc123"
    assert strip_extension("abc123") == "abc123"


def test_random_token_is_alphanumeric() -> None:
    token = random_token(32)
    assert len(token) == 32
    assert token.isalnum()


def test_link_formats() -> None:
    url = "https://img.example.com/img/abc.png"
    assert format_link(url, "a<b>.png", "markdown") == f"![a&lt;b&gt;.png]({url})"
    assert format_link(url, "cat.png", "html") == f'<img src="{url}" alt="cat.png" />'
    assert format_link(url, "cat.png", "bbcode") == f"[img]{url}[/img]"
    assert format_link(url, "cat.png", "url") == url
    assert set(all_links(url, "cat.png")) == {"url", "markdown", "html", "bbcode"}
