"""JSON persistence for the restaurant store."""

import json
import logging
import os
import stat
import tempfile
from contextlib import contextmanager
from typing import Iterator, TextIO

from restaurant_inspections.models import Store

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when an existing store file cannot be read or decoded."""


def load_store(path: str) -> Store:
    """Read the store at ``path``; a missing file yields an empty store.

    The file is decoded completely before a ``Store`` is built, so a failed
    read never hands back a partially populated store.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except FileNotFoundError:
        logger.info("Can't load store %s; file does not exist", path)
        return Store()
    except (OSError, ValueError) as exc:
        raise StoreError(f"Unable to read store {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise StoreError(f"Unable to read store {path}: expected a JSON object")
    try:
        store = Store.from_dict(payload)
    except (TypeError, ValueError, AttributeError) as exc:
        raise StoreError(f"Unable to decode store {path}: {exc}") from exc

    logger.info(
        "Loaded %d restaurants and %d cached addresses from %s",
        len(store.restaurants),
        len(store.geocode_cache),
        path,
    )
    return store


def _target_mode(path: str) -> int:
    """Permission bits for the replacement file: keep the existing file's, else honour the umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


@contextmanager
def _atomic_writer(path: str) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            yield fh
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def save_store(store: Store, path: str) -> None:
    """Write ``store`` as indented JSON, replacing any previous file atomically."""
    with _atomic_writer(path) as fh:
        json.dump(store.to_dict(), fh, ensure_ascii=False, indent=2)
        fh.write("\n")
    logger.info("Saved %d restaurants to %s", len(store.restaurants), path)
