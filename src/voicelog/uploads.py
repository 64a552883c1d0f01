"""Temporary audio files awaiting ingestion."""

from __future__ import annotations

import logging
import re
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)


@dataclass
class AudioUpload:
    """A staged audio file owned by one ingestion.

    ``open`` is the source factory: every call returns a new, independent
    read handle. ``release`` deletes the file and is safe to call more than
    once; only the first call touches the filesystem.
    """

    path: Path
    mime_type: str | None = None
    original_name: str | None = None
    release_count: int = field(default=0, init=False)

    def open(self) -> BinaryIO:
        return open(self.path, "rb")

    def exists(self) -> bool:
        return self.path.is_file() and self.path.stat().st_size > 0

    @property
    def released(self) -> bool:
        return self.release_count > 0

    def release(self) -> None:
        self.release_count += 1
        if self.release_count > 1:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove staged audio %s: %s", self.path, exc)


def safe_upload_name(original_name: str, now_ms: int | None = None) -> str:
    """``<epoch-ms>-<name>`` with whitespace runs replaced by underscores."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    name = re.sub(r"\s+", "_", Path(original_name).name)
    return f"{stamp}-{name}"


def stage_upload(
    source: Path,
    uploads_dir: Path,
    mime_type: str | None = None,
) -> AudioUpload:
    """Copy ``source`` into ``uploads_dir`` so ingestion can own and delete it."""
    uploads_dir.mkdir(parents=True, exist_ok=True)
    target = uploads_dir / safe_upload_name(source.name)
    shutil.copyfile(source, target)
    return AudioUpload(path=target, mime_type=mime_type, original_name=source.name)
