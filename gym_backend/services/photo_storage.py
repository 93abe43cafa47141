"""Member photo hosting.

Photos go to Cloudinary when credentials are configured and to a local upload
directory otherwise. Either way the member row only keeps the returned URL.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

import cloudinary
import cloudinary.uploader

from gym_backend.core.config import Settings
from gym_backend.core.errors import PhotoUploadError

logger = logging.getLogger(__name__)

ALLOWED_PHOTO_EXTENSIONS = frozenset({".gif", ".jpg", ".jpeg", ".png", ".webp"})
LOCAL_PHOTO_WEB_PATH = "/uploads"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


@dataclass(frozen=True)
class UploadedPhoto:
    content: bytes
    filename: str


class PhotoStorage(ABC):
    """External image host used for member photos."""

    @abstractmethod
    def upload(self, content: bytes, filename: str) -> str:
        """Store ``content`` and return its public URL."""

    @abstractmethod
    def delete(self, photo_url: str) -> None:
        """Remove a previously uploaded photo."""


class LocalPhotoStorage(PhotoStorage):
    """Stores photos in a directory served under ``/uploads``."""

    def __init__(self, directory: Path, web_path: str = LOCAL_PHOTO_WEB_PATH) -> None:
        self.directory = directory
        self.web_path = web_path.rstrip("/")

    def upload(self, content: bytes, filename: str) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        file_name = _make_unique_filename(filename)
        (self.directory / file_name).write_bytes(content)
        return f"{self.web_path}/{file_name}"

    def delete(self, photo_url: str) -> None:
        if not photo_url.startswith(f"{self.web_path}/"):
            return
        file_name = Path(photo_url).name
        target_path = self.directory / file_name
        target_path.unlink(missing_ok=True)


class CloudinaryPhotoStorage(PhotoStorage):
    """Stores photos on Cloudinary, cropped square around the face."""

    def __init__(self, *, cloud_name: str, api_key: str, api_secret: str, folder: str) -> None:
        self.folder = folder
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    def upload(self, content: bytes, filename: str) -> str:
        public_id = f"member-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        result = cloudinary.uploader.upload(
            content,
            resource_type="image",
            folder=self.folder,
            public_id=public_id,
            transformation=[{"width": 300, "height": 300, "crop": "fill", "gravity": "face"}],
        )
        return str(result["secure_url"])

    def delete(self, photo_url: str) -> None:
        if "cloudinary.com" not in photo_url:
            return
        cloudinary.uploader.destroy(_cloudinary_public_id(photo_url))


def build_photo_storage(settings: Settings) -> PhotoStorage:
    """Return the configured photo host."""

    if settings.cloudinary_enabled:
        return CloudinaryPhotoStorage(
            cloud_name=str(settings.cloudinary_cloud_name),
            api_key=str(settings.cloudinary_api_key),
            api_secret=str(settings.cloudinary_api_secret),
            folder=settings.cloudinary_folder,
        )
    return LocalPhotoStorage(Path(settings.upload_dir))


def store_member_photo(
    storage: PhotoStorage,
    *,
    content: bytes,
    filename: str,
    max_bytes: int,
) -> str:
    """Check an uploaded photo and hand it to the host, returning its URL."""

    if Path(filename).suffix.lower() not in ALLOWED_PHOTO_EXTENSIONS:
        raise PhotoUploadError("Only image files are allowed")
    if len(content) == 0:
        raise PhotoUploadError("Uploaded file is empty")
    if len(content) > max_bytes:
        raise PhotoUploadError("File too large")

    try:
        return storage.upload(content, filename)
    except Exception as exc:
        logger.exception("Photo upload failed for %s", filename)
        raise PhotoUploadError("Failed to upload image") from exc


def delete_photo_quietly(storage: PhotoStorage, photo_url: str | None) -> None:
    """Best-effort photo removal; failures are logged, never raised."""

    if not photo_url:
        return
    try:
        storage.delete(photo_url)
    except Exception:
        logger.exception("Failed to delete photo %s", photo_url)


def _cloudinary_public_id(photo_url: str) -> str:
    # .../upload/v123/gym-members/member-1-2.jpg -> gym-members/member-1-2
    folder_and_file = "/".join(photo_url.split("/")[-2:])
    return folder_and_file.rsplit(".", 1)[0]


def _make_unique_filename(uploaded_filename: str) -> str:
    filename = Path(uploaded_filename).name
    extension = Path(filename).suffix.lower()
    stem = filename.removesuffix(Path(filename).suffix)
    safe_stem = _UNSAFE_FILENAME_CHARS.sub("-", stem).strip("-") or "member-photo"
    return f"{safe_stem[:80]}-{uuid4().hex}{extension}"
