"""
Media Loader - Resolve Media References to Bytes
================================================

Images and documents reach the bot in three encodings:
- remote reference:  "https://example.com/invoice.pdf"
- inline data URL:   "data:application/pdf;base64,JVBERi0..."
- local path:        "/srv/images/banner.jpg"  (only where allowed)

Every form is resolved synchronously into a LoadedMedia so the send
primitive only ever sees raw bytes. Callers on the event loop should run
these methods in a worker thread.

USAGE:
    loader = MediaLoader()
    media = loader.load("data:image/png;base64,iVBORw0KGgo=")
    print(media.mimetype, len(media.data))
"""

import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from ..config import get_settings
from ...domain.errors import MediaError, MediaNotFoundError, MediaDownloadError

logger = logging.getLogger(__name__)

DEFAULT_MIMETYPE = "application/octet-stream"

_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


@dataclass(frozen=True)
class LoadedMedia:
    data: bytes
    mimetype: str = DEFAULT_MIMETYPE


def is_data_url(reference: str) -> bool:
    return reference.startswith("data:")


def is_remote_url(reference: str) -> bool:
    return reference.startswith(("http://", "https://"))


def _normalize_base64(payload: str) -> str:
    text = "".join(payload.split()).translate(_URLSAFE_TO_STANDARD)
    return text + "=" * (-len(text) % 4)


def decode_data_url(reference: str) -> LoadedMedia:
    """
    Decode a base64 data URL.

    Only the ";base64" form is accepted; the payload is everything after
    the first comma. Whitespace, missing padding and the URL-safe alphabet
    are tolerated. Any other character is rejected.
    """
    header, sep, payload = reference.partition(",")
    if not sep or not header.startswith("data:"):
        raise MediaError("Malformed data URL")

    params = header[len("data:"):].split(";")
    if "base64" not in params[1:]:
        raise MediaError("Only base64 data URLs are supported")

    try:
        data = base64.b64decode(_normalize_base64(payload), validate=True)
    except (binascii.Error, ValueError) as e:
        raise MediaError(f"Invalid base64 payload: {e}") from e

    return LoadedMedia(data=data, mimetype=params[0] or DEFAULT_MIMETYPE)


class MediaLoader:
    """
    Resolves URLs, data URLs and local paths into bytes.

    Downloads go through a requests.Session so connections are pooled
    across replies.
    """

    def __init__(self, timeout: Optional[int] = None, session: Optional[requests.Session] = None):
        self._timeout = timeout or get_settings().media.download_timeout
        self._session = session or requests.Session()

    def download(self, url: str) -> LoadedMedia:
        """Fetch a remote URL. Raises MediaDownloadError on any HTTP failure."""
        logger.debug(f"Downloading media from {url}")
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise MediaDownloadError(f"Failed to download {url}: {e}") from e

        content_type = response.headers.get("Content-Type", "")
        mimetype = content_type.split(";")[0].strip() or _guess_mimetype(url)
        return LoadedMedia(data=response.content, mimetype=mimetype)

    def read_local(self, path: str) -> LoadedMedia:
        file_path = Path(path)
        if not file_path.is_file():
            raise MediaNotFoundError(f"File not found: {path}")
        return LoadedMedia(data=file_path.read_bytes(), mimetype=_guess_mimetype(path))

    def load(self, reference: str, allow_local: bool = False) -> LoadedMedia:
        """Resolve any supported reference form."""
        if is_data_url(reference):
            return decode_data_url(reference)
        if is_remote_url(reference):
            return self.download(reference)
        if allow_local:
            return self.read_local(reference)
        raise MediaError("Media reference must be an http(s) URL or a base64 data URL")

    def close(self) -> None:
        self._session.close()


def _guess_mimetype(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or DEFAULT_MIMETYPE
