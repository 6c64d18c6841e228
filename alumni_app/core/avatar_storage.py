from __future__ import annotations

import logging
import posixpath

from django.conf import settings
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


def avatar_storage_key(stored: str) -> str:
    """Return the object key for an avatar reference kept on a profile.

    Profiles store either an absolute URL or a key relative to
    ``AVATAR_STORAGE_DIR``; keys that already carry the directory are kept.
    """
    key = str(stored or "").strip().lstrip("/")
    base_dir = str(settings.AVATAR_STORAGE_DIR or "avatars").strip("/")
    if not key or key.startswith(f"{base_dir}/"):
        return key
    return posixpath.join(base_dir, key)


def resolve_avatar_url(stored: str | None) -> str | None:
    """Public URL for a profile avatar, or None when there is none to show."""
    value = str(stored or "").strip()
    if not value:
        return None
    if value.startswith(("http://", "https://")):
        return value

    key = avatar_storage_key(value)
    try:
        if not default_storage.exists(key):
            return None
        url = str(default_storage.url(key) or "").strip()
    except Exception:
        # Listings still render without the picture.
        logger.exception("resolve_avatar_url: storage lookup failed key=%s", key)
        return None
    return url or None
