from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from imgbed.db.kv import APP_SETTINGS_KEY, KVStore
from imgbed.models.app_settings import AppSettings


logger = logging.getLogger(__name__)

# Per-field keys written by older deployments before settings were consolidated.
LEGACY_KEYS = {
    "default_copy_format": "config:defaultCopyFormat",
    "custom_image_prefix": "config:customImagePrefix",
    "enable_hotlink_protection": "config:enableHotlinkProtection",
    "allowed_domains": "config:allowedDomains",
    "site_domain": "config:siteDomain",
}


def _parse_legacy_domains(raw: str) -> list[str]:
    try:
        value = json.loads(raw)
    except ValueError:
        value = raw.split(",")
    if not isinstance(value, list):
        return []
    return [str(x).strip() for x in value if str(x).strip()]


async def _read_legacy(kv: KVStore) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for field, key in LEGACY_KEYS.items():
        raw = await kv.get(key)
        if raw is None:
            continue
        if field == "enable_hotlink_protection":
            out[field] = raw.strip().lower() == "true"
        elif field == "allowed_domains":
            out[field] = _parse_legacy_domains(raw)
        elif raw or field in {"custom_image_prefix", "site_domain"}:
            out[field] = raw.strip()
    return out


async def _read_stored(kv: KVStore) -> dict[str, Any]:
    raw = await kv.get(APP_SETTINGS_KEY)
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        logger.error("Stored app settings under %s are not valid JSON", APP_SETTINGS_KEY)
        return {}
    return value if isinstance(value, dict) else {}


def _merge(values: dict[str, Any]) -> AppSettings:
    try:
        return AppSettings.model_validate(values)
    except ValidationError:
        logger.warning("Stored app settings failed validation, falling back field by field")
    merged = AppSettings()
    for field, value in values.items():
        if field not in AppSettings.model_fields:
            continue
        try:
            merged = AppSettings.model_validate({**merged.model_dump(), field: value})
        except ValidationError:
            logger.warning("Ignoring invalid stored setting %s=%r", field, value)
    return merged


async def load_app_settings(kv: KVStore) -> AppSettings:
    stored = await _read_stored(kv)
    if stored:
        return _merge(stored)

    legacy = await _read_legacy(kv)
    settings = _merge(legacy)
    if legacy:
        await kv.put(APP_SETTINGS_KEY, settings.model_dump_json())
        logger.info("Migrated %d legacy setting(s) into %s", len(legacy), APP_SETTINGS_KEY)
    return settings


async def update_app_settings(kv: KVStore, changes: dict[str, Any]) -> AppSettings:
    current = await load_app_settings(kv)
    values = current.model_dump()

    for field, value in changes.items():
        if field not in values:
            continue
        if value is None and field not in {"custom_image_prefix", "site_domain", "allowed_domains"}:
            continue
        if field in {"custom_image_prefix", "site_domain"}:
            value = str(value or "").strip()
        elif field == "allowed_domains":
            value = [str(d).strip() for d in (value or []) if str(d).strip()]
        values[field] = value

    updated = AppSettings.model_validate(values)
    await kv.put(APP_SETTINGS_KEY, updated.model_dump_json())
    return updated
