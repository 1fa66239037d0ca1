from __future__ import annotations

import logging
from urllib.parse import urlsplit

from imgbed.models.app_settings import AppSettings
from imgbed.services.text import strip_extension


logger = logging.getLogger(__name__)

IGNORED_SLUG_PREFIXES = (".", "favicon.ico", "robots.txt")


def resolve_image_id(slug: str, app_settings: AppSettings) -> str | None:
    """Map ``{prefix}/{id}.{ext}`` to the image id, or None when the path is not an image URL."""
    slug = str(slug or "")
    if not slug or slug.startswith(IGNORED_SLUG_PREFIXES):
        return None

    parts = slug.split("/")
    if len(parts) < 2:
        return None

    request_prefix = "/".join(parts[:-1])
    if request_prefix != app_settings.image_prefix:
        logger.debug("Image request with mismatched prefix %r (expected %r)", request_prefix, app_settings.image_prefix)
        return None

    image_id = strip_extension(parts[-1])
    return image_id or None


def _netloc_host(netloc: str) -> str:
    """Host with its port kept and any userinfo dropped."""
    return netloc.rsplit("@", 1)[-1].strip().lower()


def _domain_host(domain: str) -> str:
    value = domain.strip().lower()
    if "://" in value:
        value = urlsplit(value).netloc
    value = _netloc_host(value)
    if value.startswith("*."):
        value = value[2:]
    return value.split("/", 1)[0].strip(".")


def referer_allowed(referer: str | None, request_host: str | None, app_settings: AppSettings) -> bool:
    """Hosts are compared with their ports, so ``example.com:8080`` is not ``example.com``."""
    if not app_settings.enable_hotlink_protection:
        return True
    if not referer:
        return True

    try:
        referer_host = _netloc_host(urlsplit(referer).netloc)
    except ValueError:
        return False
    if not referer_host:
        return False
    if request_host and referer_host == _netloc_host(request_host):
        return True

    for domain in app_settings.allowed_domains:
        host = _domain_host(domain)
        if host and (referer_host == host or referer_host.endswith("." + host)):
            return True
    return False


def _strip_weak(tag: str) -> str:
    tag = tag.strip()
    return tag[2:] if tag[:2].upper() == "W/" else tag


def etag_matches(if_none_match: str | None, etag: str | None) -> bool:
    if not if_none_match or not etag:
        return False
    current = _strip_weak(etag)
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*" or _strip_weak(candidate) == current:
            return True
    return False
