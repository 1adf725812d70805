from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DICDIR_ENV = "PATHRUBY_MECAB_DICDIR"


@dataclass(slots=True)
class DictionaryStatus:
    name: str
    available: bool
    path: Path | None
    source: str | None
    detail: str | None = None


def _env_dicdir() -> Path | None:
    env_dir = os.environ.get(DICDIR_ENV)
    if not env_dir:
        return None
    candidate = Path(env_dir).expanduser()
    if (candidate / "dicrc").exists():
        return candidate
    return None


def _package_dicdir() -> Path | None:
    try:
        import ipadic  # type: ignore
    except ImportError:
        return None
    dicdir = Path(getattr(ipadic, "DICDIR", ""))
    if dicdir and (dicdir / "dicrc").exists():
        return dicdir
    return None


def get_mecab_dicdir() -> Path | None:
    """Return an IPADIC-layout dictionary directory, or None when none is installed."""
    return _env_dicdir() or _package_dicdir()


def describe_dictionary() -> DictionaryStatus:
    env_dir = _env_dicdir()
    if env_dir is not None:
        return DictionaryStatus(name="IPADIC", available=True, path=env_dir, source=DICDIR_ENV)
    package_dir = _package_dicdir()
    if package_dir is not None:
        return DictionaryStatus(name="IPADIC", available=True, path=package_dir, source="ipadic")
    detail = f"Install the 'ipadic' package or set {DICDIR_ENV}."
    if os.environ.get(DICDIR_ENV):
        detail = f"{DICDIR_ENV} does not point at a directory containing dicrc."
    return DictionaryStatus(name="IPADIC", available=False, path=None, source=None, detail=detail)
