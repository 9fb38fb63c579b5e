"""
Photo upload service.

Proof-of-delivery and report photos arrive as base64 strings and are
handed to a PhotoUploader, which returns the public URL to store.
"""

import base64
import binascii
import logging
import os
import uuid
from typing import Optional, Tuple

import httpx

from lastmile.app.core.config import settings
from lastmile.app.core.exceptions import PhotoUploadError, AppException
from lastmile.app.core.reliability import photo_host_breaker, CircuitOpenError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class InvalidPhotoError(AppException):
    """Raised when a photo payload is not valid base64."""

    def __init__(self):
        super().__init__(
            message="Photo is not valid base64 data",
            error_code="ERR_UPLOAD_002",
            status_code=400
        )


def decode_photo(photo: str) -> Tuple[bytes, str]:
    """
    Decode a base64 photo, with or without a data URI prefix.

    Returns:
        (raw bytes, file extension)
    """
    extension = "jpg"
    data = photo.strip()

    if data.startswith("data:"):
        header, _, data = data.partition(",")
        mime = header[len("data:"):].split(";")[0].lower()
        extension = _EXTENSIONS.get(mime, extension)

    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidPhotoError()

    if not raw:
        raise InvalidPhotoError()

    return raw, extension


class PhotoUploader:
    """Interface: store a base64 photo and return its URL."""

    async def upload(self, photo: str, folder: str) -> str:
        raise NotImplementedError


class LocalPhotoStorage(PhotoUploader):
    """Writes photos under a local directory served at base_url."""

    def __init__(self, directory: str, base_url: str):
        self.directory = directory
        self.base_url = base_url.rstrip("/")

    async def upload(self, photo: str, folder: str) -> str:
        raw, extension = decode_photo(photo)
        filename = f"{uuid.uuid4().hex}.{extension}"

        target_dir = os.path.join(self.directory, folder)
        os.makedirs(target_dir, exist_ok=True)
        with open(os.path.join(target_dir, filename), "wb") as fh:
            fh.write(raw)

        return f"{self.base_url}/{folder}/{filename}"


class RemotePhotoUploader(PhotoUploader):
    """
    Posts photos to an external image host.

    The host answers with JSON containing `secure_url`. Calls go through
    the shared circuit breaker so a dead host fails fast.
    """

    def __init__(self, upload_url: str, upload_preset: Optional[str] = None,
                 timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.upload_url = upload_url
        self.upload_preset = upload_preset
        self.timeout = timeout
        self.transport = transport

    async def _post(self, photo: str, folder: str) -> str:
        data = {"file": photo, "folder": folder}
        if self.upload_preset:
            data["upload_preset"] = self.upload_preset

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.upload_url, data=data)
            response.raise_for_status()
            return response.json()["secure_url"]

    async def upload(self, photo: str, folder: str) -> str:
        # Reject garbage before spending a network call on it
        decode_photo(photo)

        try:
            return await photo_host_breaker.call(self._post, photo, folder)
        except CircuitOpenError:
            logger.warning("Photo host circuit open, rejecting upload")
            raise PhotoUploadError("Photo service temporarily unavailable")
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Photo upload failed: %s", exc)
            raise PhotoUploadError()


def get_photo_uploader() -> PhotoUploader:
    """FastAPI dependency selecting the configured uploader."""
    if settings.photo_upload_url:
        return RemotePhotoUploader(settings.photo_upload_url, settings.photo_upload_preset)
    return LocalPhotoStorage(settings.photo_storage_dir, settings.photo_public_base_url)
