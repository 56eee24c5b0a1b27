"""Framework detection: read the Rails version from Gemfile.lock or Gemfile."""

from __future__ import annotations

import logging
import os
import re
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def detect_rails(app_root: str) -> Tuple[bool, Optional[str]]:
    """Detect if the app depends on Rails and extract the Rails version.

    Returns (is_rails, version_string).
    """
    # Gemfile.lock has the exact version
    version = _parse_gemfile_lock(os.path.join(app_root, "Gemfile.lock"))
    if version:
        return True, version

    return _parse_gemfile(os.path.join(app_root, "Gemfile"))


def rails_major_version(version: Optional[str]) -> Optional[int]:
    """`7.0.4.3` -> 7, `~> 6.1` -> 6; None if no number is present."""
    if not version:
        return None
    match = re.search(r"(\d+)", version)
    return int(match.group(1)) if match else None


def _read(path: str) -> Optional[str]:
    if not os.path.isfile(path):
        return None
    try:
        with open(path, "r") as f:
            return f.read()
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return None


def _parse_gemfile_lock(path: str) -> Optional[str]:
    """Parse Gemfile.lock for the rails (or railties) gem version."""
    content = _read(path)
    if content is None:
        return None

    match = re.search(r"^\s+(?:rails|railties) \((\d+\.\d+[^)]*)\)", content, re.MULTILINE)
    if match:
        return match.group(1)
    return None


def _parse_gemfile(path: str) -> Tuple[bool, Optional[str]]:
    """Parse Gemfile for rails gem declaration."""
    content = _read(path)
    if content is None:
        return False, None

    # gem 'rails', '~> 7.0' or gem "railties", "7.0.4"
    match = re.search(r"""gem\s+['"]rail(?:s|ties)['"](?:\s*,\s*['"]([^'"]+)['"])?""", content)
    if match:
        return True, match.group(1)
    return False, None
