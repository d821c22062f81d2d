"""
coursehub/uploads.py
File intake for materials and submissions

check_upload() is a pure predicate over (declared MIME type, size) and runs
before anything touches the disk. FileStore writes accepted files under a
generated name and removes them again if the metadata commit fails.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import Depends, File, UploadFile, status
from starlette.concurrency import run_in_threadpool

from coursehub.config import API_PREFIX, Settings
from coursehub.database import get_settings
from coursehub.errors import ErrorCode, NoFileError, UploadRejectedError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({
    "application/pdf",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/zip",
})
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
CHUNK_SIZE = 1024 * 1024
SUBMISSION_URL_PREFIX = f"{API_PREFIX}/submissions/files"


@dataclass(frozen=True)
class UploadVerdict:
    accepted: bool
    code: Optional[str] = None
    reason: Optional[str] = None


ACCEPTED = UploadVerdict(accepted=True)


def check_upload(content_type: Optional[str], size: Optional[int], max_size: int = MAX_FILE_SIZE) -> UploadVerdict:
    """Decide whether an upload may be stored. Unknown size is checked again while writing."""
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime not in ALLOWED_CONTENT_TYPES:
        return UploadVerdict(
            accepted=False,
            code=ErrorCode.UNSUPPORTED_FILE_TYPE,
            reason=f"Unsupported file type: {mime or 'unknown'}",
        )
    if size is not None and size > max_size:
        return UploadVerdict(
            accepted=False,
            code=ErrorCode.FILE_TOO_LARGE,
            reason=f"File exceeds the {max_size // (1024 * 1024)}MB limit",
        )
    return ACCEPTED


def raise_for_verdict(verdict: UploadVerdict) -> None:
    if verdict.accepted:
        return
    status_code = (
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        if verdict.code == ErrorCode.FILE_TOO_LARGE
        else status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    )
    raise UploadRejectedError(
        status_code=status_code,
        message=verdict.reason,
        code=verdict.code,
        details={"allowed_types": sorted(ALLOWED_CONTENT_TYPES), "max_size": MAX_FILE_SIZE},
    )


async def accept_upload(file: Optional[UploadFile] = File(None)) -> UploadFile:
    """Dependency: require one multipart `file` that passes check_upload()"""
    if file is None or not file.filename:
        raise NoFileError()
    raise_for_verdict(check_upload(file.content_type, file.size))
    return file


@dataclass(frozen=True)
class StoredFile:
    path: Path
    url: str
    size: int
    original_name: str

    @property
    def extension(self) -> str:
        return Path(self.original_name).suffix.lower().lstrip(".")


def generate_filename(original_name: str) -> str:
    return uuid.uuid4().hex + Path(original_name).suffix.lower()


class FileStore:
    """Writes uploads into a directory served under url_prefix"""

    def __init__(self, root: Path, url_prefix: str = "/uploads", max_size: int = MAX_FILE_SIZE):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_size = max_size

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _copy(self, source, target: Path) -> int:
        written = 0
        with target.open("wb") as out:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_size:
                    raise UploadRejectedError(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        message=f"File exceeds the {self.max_size // (1024 * 1024)}MB limit",
                        code=ErrorCode.FILE_TOO_LARGE,
                    )
                out.write(chunk)
        return written

    async def save(self, upload: UploadFile) -> StoredFile:
        self.ensure_root()
        name = generate_filename(upload.filename)
        target = self.root / name
        await upload.seek(0)
        try:
            size = await run_in_threadpool(self._copy, upload.file, target)
        except Exception:
            self.remove_path(target)
            raise
        logger.info(f"Stored upload {upload.filename!r} as {name} ({size} bytes)")
        return StoredFile(path=target, url=self.url_for(name), size=size, original_name=upload.filename)

    def remove_path(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Could not remove file {path}: {e}")

    def url_for(self, name: str) -> str:
        return f"{self.url_prefix}/{name}"

    def path_for_url(self, url: str) -> Optional[Path]:
        """Map a URL issued by this store back to its file; None for anything else"""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        name = url[len(self.url_prefix) + 1:]
        if "/" in name or "\\" in name or name in ("", ".", ".."):
            return None
        return self.root / name

    def remove_url(self, url: str) -> None:
        """Remove a previously stored file given its URL"""
        path = self.path_for_url(url)
        if path is not None:
            self.remove_path(path)

    @asynccontextmanager
    async def staged(self, upload: UploadFile):
        """
        Save an upload for the duration of a block; if the block raises,
        the file is deleted so no orphan is left behind.
        """
        stored = await self.save(upload)
        try:
            yield stored
        except BaseException:
            logger.warning(f"Discarding {stored.path.name}: metadata was not committed")
            self.remove_path(stored.path)
            raise


def get_file_store(settings: Settings = Depends(get_settings)) -> FileStore:
    """Course materials: public, served as static files"""
    return FileStore(settings.upload_dir, settings.upload_url_prefix)


def get_submission_store(settings: Settings = Depends(get_settings)) -> FileStore:
    """Student submissions: kept out of the static mount, downloaded through the API"""
    return FileStore(settings.submission_dir, SUBMISSION_URL_PREFIX)
