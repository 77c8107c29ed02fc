"""Environment driven settings for the CLI and the HTTP service.

Variables:

* ``EVENTDOCX_TEMPLATE`` - path of the proposal template (``.docx``);
  unset means the built-in template.
* ``EVENTDOCX_FILENAME_SUFFIX`` - suffix appended to download file names.
* ``EVENTDOCX_DEFAULT_REL_ID`` - first hyperlink relationship number when
  the template has no ``rId<n>`` identifiers to continue from.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from eventdocx.hyperlinks import DEFAULT_FIRST_REL_ID

TEMPLATE_ENV = "EVENTDOCX_TEMPLATE"
FILENAME_SUFFIX_ENV = "EVENTDOCX_FILENAME_SUFFIX"
DEFAULT_REL_ID_ENV = "EVENTDOCX_DEFAULT_REL_ID"

DEFAULT_FILENAME_SUFFIX = "_pengajuan"

_SUFFIX_RE = re.compile(r"^[A-Za-z0-9_-]*$")


class SettingsError(RuntimeError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    template_path: Optional[Path] = None
    filename_suffix: str = DEFAULT_FILENAME_SUFFIX
    default_rel_id: int = DEFAULT_FIRST_REL_ID


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read :class:`Settings` from *environ* (defaults to ``os.environ``)."""
    env = os.environ if environ is None else environ

    template = (env.get(TEMPLATE_ENV) or "").strip()
    suffix = env.get(FILENAME_SUFFIX_ENV)
    if suffix is None:
        suffix = DEFAULT_FILENAME_SUFFIX
    suffix = suffix.strip()
    if not _SUFFIX_RE.match(suffix):
        raise SettingsError(
            f"{FILENAME_SUFFIX_ENV} may only contain letters, digits, '_' and '-'"
        )

    return Settings(
        template_path=Path(template).expanduser() if template else None,
        filename_suffix=suffix,
        default_rel_id=_parse_positive_int(env.get(DEFAULT_REL_ID_ENV), DEFAULT_FIRST_REL_ID),
    )


def _parse_positive_int(raw: Optional[str], default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise SettingsError(f"{DEFAULT_REL_ID_ENV} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise SettingsError(f"{DEFAULT_REL_ID_ENV} must be positive, got {value}")
    return value
