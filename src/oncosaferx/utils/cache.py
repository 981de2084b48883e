"""
On-disk JSON cache for slow-changing backend responses (drug search and
drug detail lookups).

One file per entry, named by a SHA-256 of namespace and params. Each entry
stores ``data``, ``cached_at`` and its own ``ttl``; stale or unreadable
files are removed when read.
"""

import hashlib
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from oncosaferx.constants import CACHE_TTL

logger = logging.getLogger(__name__)


def cache_key(namespace: str, params: dict[str, Any]) -> str:
    """Stable digest of namespace and params; param order does not matter."""
    payload = json.dumps({"ns": namespace, **params}, sort_keys=True, default=str)
    return hashlib.sha256(payload.encode()).hexdigest()


def entry_path(cache_dir: Path, namespace: str, params: dict[str, Any]) -> Path:
    return cache_dir / f"{cache_key(namespace, params)}.json"


def _is_fresh(entry: dict[str, Any]) -> bool:
    cached_at = datetime.fromisoformat(entry["cached_at"])
    expires_at = cached_at + timedelta(seconds=entry.get("ttl", CACHE_TTL))
    return datetime.now() <= expires_at


def cache_get(namespace: str, params: dict[str, Any], cache_dir: Path) -> Any | None:
    path = entry_path(cache_dir, namespace, params)
    try:
        entry = json.loads(path.read_text())
        fresh = _is_fresh(entry)
        data = entry["data"]
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        logger.debug("Dropping unreadable cache entry %s", path.name)
        path.unlink(missing_ok=True)
        return None

    if not fresh:
        logger.debug("Cache entry for %s expired", namespace)
        path.unlink(missing_ok=True)
        return None
    return data


def cache_set(
    namespace: str,
    params: dict[str, Any],
    data: Any,
    cache_dir: Path,
    ttl: int | None = None,
) -> None:
    cache_dir.mkdir(parents=True, exist_ok=True)
    entry = {
        "data": data,
        "cached_at": datetime.now().isoformat(),
        "ttl": CACHE_TTL if ttl is None else ttl,
    }
    entry_path(cache_dir, namespace, params).write_text(json.dumps(entry, default=str))


def cache_invalidate(namespace: str, params: dict[str, Any], cache_dir: Path) -> None:
    entry_path(cache_dir, namespace, params).unlink(missing_ok=True)
