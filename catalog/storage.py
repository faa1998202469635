"""Disk storage for uploaded catalog images.

Files land in ``<upload_dir>/<kind>s/`` under a collision-resistant name and
are referenced publicly as ``/uploads/<kind>s/<filename>``.
"""
import logging
import os
import random
import re
import time
from typing import Iterable, List, NamedTuple, Optional

from fastapi import UploadFile

from .errors import PayloadTooLarge, UnsupportedMediaType

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif|webp")


class PendingUpload(NamedTuple):
    filename: str
    content_type: str
    content: bytes

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1].lower()


def check_image(filename: Optional[str], content_type: Optional[str], size: int):
    ext = os.path.splitext(filename or "")[1].lower()
    if not (ext and ALLOWED_TYPES.search(ext) and ALLOWED_TYPES.search(content_type or "")):
        raise UnsupportedMediaType()
    if size > MAX_FILE_SIZE:
        raise PayloadTooLarge(f"File {filename} exceeds the 5MB limit")


async def read_uploads(files: Optional[Iterable[UploadFile]]) -> List[PendingUpload]:
    """Read and vet every upload of a request before anything is persisted."""
    pending = []
    for upload in files or []:
        if not upload.filename:
            # browsers send an empty part when no file was picked
            continue
        # never buffer more than one byte past the limit
        content = await upload.read(MAX_FILE_SIZE + 1)
        check_image(upload.filename, upload.content_type, len(content))
        pending.append(PendingUpload(upload.filename, upload.content_type, content))
    return pending


class AssetStorage:
    def __init__(self, root: str, public_prefix: str = PUBLIC_PREFIX):
        self.root = os.path.abspath(root)
        self.public_prefix = public_prefix.rstrip("/")

    def _unique_name(self, kind: str, extension: str) -> str:
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{kind}-{suffix}{extension}"

    def save(self, kind: str, upload: PendingUpload) -> str:
        """Write ``upload`` under the ``kind`` directory and return its public path."""
        folder = f"{kind}s"
        directory = os.path.join(self.root, folder)
        os.makedirs(directory, exist_ok=True)
        name = self._unique_name(kind, upload.extension)
        with open(os.path.join(directory, name), "wb") as fh:
            fh.write(upload.content)
        return f"{self.public_prefix}/{folder}/{name}"

    def save_all(self, kind: str, uploads: Iterable[PendingUpload]) -> List[str]:
        return [self.save(kind, upload) for upload in uploads]

    def path_for(self, public_path: Optional[str]) -> Optional[str]:
        """Map a public path back to a file inside the upload root, or None."""
        if not public_path or not public_path.startswith(self.public_prefix + "/"):
            return None
        relative = public_path[len(self.public_prefix) + 1:]
        candidate = os.path.abspath(os.path.join(self.root, relative))
        if os.path.commonpath([candidate, self.root]) != self.root:
            return None
        return candidate

    def delete(self, public_path: Optional[str]) -> bool:
        """Remove a stored file. Missing files and foreign paths are not errors."""
        path = self.path_for(public_path)
        if path is None:
            return False
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Failed deleting image %s: %s", public_path, e)
            return False
        return True

    def delete_all(self, public_paths: Iterable[Optional[str]]):
        for public_path in public_paths:
            self.delete(public_path)
