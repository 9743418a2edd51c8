"""
Media upload for avatar and cover images.

Files arrive as multipart uploads, are written to UPLOAD_TEMP_DIR, then handed
to MediaUploader which pushes them to the configured blob service (or copies
them under MEDIA_ROOT when none is configured). The temp file is removed
whatever the outcome.
"""
from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

import httpx
from flask import current_app
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


class MediaUploadError(Exception):
    pass


class MediaUploader:
    def __init__(self, *, upload_url: str = "", api_key: str = "", media_root: str = "media",
                 public_base_url: str = "/media", timeout: float = 30.0,
                 transport: httpx.BaseTransport | None = None):
        self.upload_url = upload_url
        self.api_key = api_key
        self.media_root = Path(media_root)
        self.public_base_url = public_base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config) -> "MediaUploader":
        return cls(
            upload_url=config.get("MEDIA_UPLOAD_URL", ""),
            api_key=config.get("MEDIA_UPLOAD_API_KEY", ""),
            media_root=config.get("MEDIA_ROOT", "media"),
            public_base_url=config.get("MEDIA_PUBLIC_BASE_URL", "/media"),
            timeout=config.get("MEDIA_UPLOAD_TIMEOUT", 30.0),
            transport=config.get("MEDIA_UPLOAD_TRANSPORT"),
        )

    def upload_file(self, local_path: str | os.PathLike) -> dict:
        """Upload local_path and return {"url": ...}; the local file is always deleted."""
        path = Path(local_path)
        if not path.is_file():
            raise MediaUploadError(f"No such file: {path.name}")
        try:
            if self.upload_url:
                return self._upload_remote(path)
            return self._store_local(path)
        finally:
            path.unlink(missing_ok=True)

    def _upload_remote(self, path: Path) -> dict:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                with path.open("rb") as fh:
                    response = client.post(
                        self.upload_url, files={"file": (path.name, fh)}, headers=headers
                    )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Media upload failed for %s: %s", path.name, exc)
            raise MediaUploadError("Media upload failed") from exc

        url = body.get("secure_url") or body.get("url")
        if not url:
            raise MediaUploadError("Media service returned no url")
        return {"url": url}

    def _store_local(self, path: Path) -> dict:
        self.media_root.mkdir(parents=True, exist_ok=True)
        name = path.name
        try:
            shutil.copyfile(path, self.media_root / name)
        except OSError as exc:
            raise MediaUploadError("Could not store media file") from exc
        return {"url": f"{self.public_base_url}/{name}"}

    def discard(self, url: str | None) -> None:
        """
        Best-effort removal of a file this uploader stored. Used to clean up
        when a later step of the same request fails; errors are only logged.
        """
        if not url:
            return
        if self.upload_url:
            self._discard_remote(url)
            return
        prefix = f"{self.public_base_url}/"
        if url.startswith(prefix):
            name = Path(url[len(prefix):]).name
            (self.media_root / name).unlink(missing_ok=True)

    def _discard_remote(self, url: str) -> None:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.delete(self.upload_url, params={"url": url}, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Could not discard uploaded media %s: %s", url, exc)


def save_temp_upload(file_storage) -> str | None:
    """Write a werkzeug FileStorage to the temp upload dir; None when no file was sent."""
    if file_storage is None or not file_storage.filename:
        return None
    temp_dir = Path(current_app.config["UPLOAD_TEMP_DIR"])
    temp_dir.mkdir(parents=True, exist_ok=True)
    filename = secure_filename(file_storage.filename) or "upload"
    target = temp_dir / f"{uuid.uuid4().hex}-{filename}"
    file_storage.save(str(target))
    return str(target)


def get_uploader() -> MediaUploader:
    return MediaUploader.from_config(current_app.config)


def discard_temp_upload(*paths):
    for path in paths:
        if path:
            Path(path).unlink(missing_ok=True)
