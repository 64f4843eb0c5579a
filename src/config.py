"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level configuration constants used across the codebase (GitHub
hosts, HTTP_VERIFY, timeouts and the ref lookup depth).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from core.models import HostConfig


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def parse_host_configs(primary_host: str, primary_api_base_url: Optional[str], extra: str = "") -> List[HostConfig]:
    """Build the host list from the primary pair plus 'host[=api_base];...' entries."""
    configs = [HostConfig.for_host(primary_host, primary_api_base_url)]

    for item in (extra or "").split(";"):
        item = item.strip()
        if not item:
            continue
        host, _, api_base = item.partition("=")
        if not host.strip():
            raise ValueError(f"Malformed GITHUB_EXTRA_HOSTS entry: {item!r}")
        configs.append(HostConfig.for_host(host, api_base or None))

    return configs


# GitHub deployments
GITHUB_HOST = os.environ.get("GITHUB_HOST", "github.com").strip()
GITHUB_API_BASE_URL = os.environ.get("GITHUB_API_BASE_URL", "").strip() or None
GITHUB_EXTRA_HOSTS = os.environ.get("GITHUB_EXTRA_HOSTS", "").strip()
HOST_CONFIGS = parse_host_configs(GITHUB_HOST, GITHUB_API_BASE_URL, GITHUB_EXTRA_HOSTS)

# Network / HTTP
HTTP_VERIFY = _env_bool("HTTP_VERIFY", True)
GITHUB_TIMEOUT = _env_float("GITHUB_TIMEOUT", 20.0)

# Segments probed when a tree URL's ref may contain '/'
MAX_REF_DEPTH = _env_int("MAX_REF_DEPTH", 3)

# Parent directory for TreeResponse.dir() temp dirs (system default when unset)
_work_dir = os.environ.get("TREE_WORK_DIR", "").strip()
TREE_WORK_DIR = Path(_work_dir).resolve() if _work_dir else None
