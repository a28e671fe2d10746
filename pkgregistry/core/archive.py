"""
archive.py
==========

Zip helpers used by ingestion and search.

Debloat
-------
``debloat`` rewrites a package archive keeping only what is needed to run it:

- directory entries are kept as empty placeholders
- ``.json`` and ``.css`` entries are copied verbatim
- ``.js`` / ``.mjs`` / ``.cjs`` entries are minified with rjsmin; when an entry
  cannot be decoded or minified the original bytes are kept
- everything else (docs, tests, images, ...) is dropped

Entry names, and therefore the directory layout, are preserved.
"""

import io
import zipfile
from pathlib import PurePosixPath
from typing import Optional

import rjsmin
from loguru import logger

from .errors import ValidationError

SCRIPT_SUFFIXES = {".js", ".mjs", ".cjs"}
VERBATIM_SUFFIXES = {".json", ".css"}


def _open(data: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile:
        raise ValidationError("package content is not a valid zip archive")


def minify_script(source: bytes, name: str = "") -> bytes:
    try:
        return rjsmin.jsmin(source.decode("utf-8")).encode("utf-8")
    except Exception as e:
        logger.warning("Minification failed for {}: {}; keeping original", name, e)
        return source


def debloat(data: bytes) -> bytes:
    """Return a reduced copy of the zip archive ``data``."""
    out = io.BytesIO()
    kept = dropped = 0
    with _open(data) as src, zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as dst:
        for info in src.infolist():
            if info.is_dir():
                dst.writestr(info.filename, b"")
                kept += 1
                continue
            suffix = PurePosixPath(info.filename).suffix.lower()
            if suffix in VERBATIM_SUFFIXES:
                dst.writestr(info.filename, src.read(info))
            elif suffix in SCRIPT_SUFFIXES:
                dst.writestr(info.filename, minify_script(src.read(info), info.filename))
            else:
                dropped += 1
                continue
            kept += 1
    logger.debug("Debloat kept {} entries, dropped {}", kept, dropped)
    return out.getvalue()


def extract_readme(data: bytes) -> Optional[str]:
    """Text of the shallowest README* entry in the archive, or None."""
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile:
        logger.warning("Cannot read README: content is not a zip archive")
        return None
    with zf:
        candidates = [
            i for i in zf.infolist()
            if not i.is_dir() and PurePosixPath(i.filename).name.lower().startswith("readme")
        ]
        if not candidates:
            return None
        entry = min(candidates, key=lambda i: (i.filename.count("/"), i.filename))
        return zf.read(entry).decode("utf-8", errors="replace")
