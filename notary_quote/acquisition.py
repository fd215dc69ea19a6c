from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Iterable

from .config import Limits
from .errors import AcquisitionError
from .types import FileFailure, FileKind, SourceFile
from .utils import new_file_id

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSIONS: dict[str, FileKind] = {
    ".pdf": "pdf",
    ".jpg": "image",
    ".jpeg": "image",
    ".png": "image",
    ".webp": "image",
}
ACCEPTED_MIME_TYPES: dict[str, FileKind] = {
    "application/pdf": "pdf",
    "image/jpeg": "image",
    "image/png": "image",
    "image/webp": "image",
}


def detect_kind(path: Path) -> tuple[FileKind | None, str | None]:
    """MIME type first, extension as fallback."""
    mime, _ = mimetypes.guess_type(path.name)
    if mime in ACCEPTED_MIME_TYPES:
        return ACCEPTED_MIME_TYPES[mime], mime
    return ACCEPTED_EXTENSIONS.get(path.suffix.lower()), mime


def validate_file(path: str | Path, limits: Limits) -> SourceFile:
    p = Path(path)
    if not p.is_file():
        raise AcquisitionError("file not found", file_name=p.name)

    kind, mime = detect_kind(p)
    if kind is None:
        raise AcquisitionError("unsupported format", file_name=p.name)

    size = p.stat().st_size
    if size > limits.max_file_size_bytes:
        raise AcquisitionError(f"exceeds the {limits.max_file_size_mb}MB limit", file_name=p.name)

    return SourceFile(file_id=new_file_id(), path=p, name=p.name, size=size, kind=kind, mime_type=mime)


def acquire_files(paths: Iterable[str | Path], limits: Limits) -> tuple[list[SourceFile], list[FileFailure]]:
    """Validate a batch. Rejected files are reported, never raised."""
    accepted: list[SourceFile] = []
    rejected: list[FileFailure] = []

    candidates = [Path(p) for p in paths]
    if len(candidates) > limits.max_files_at_once:
        for extra in candidates[limits.max_files_at_once:]:
            rejected.append(
                FileFailure(
                    file_name=extra.name,
                    stage=AcquisitionError.stage,
                    message=f"too many files (at most {limits.max_files_at_once} per batch)",
                )
            )
        candidates = candidates[: limits.max_files_at_once]

    for p in candidates:
        try:
            accepted.append(validate_file(p, limits))
        except AcquisitionError as e:
            rejected.append(FileFailure(file_name=p.name, stage=e.stage, message=e.message))

    for r in rejected:
        logger.warning("Rejected %s: %s", r.file_name, r.message)
    return accepted, rejected
