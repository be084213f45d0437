# cloudinary_service.py

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Generator, List, Optional, Sequence
from urllib.parse import urlsplit

import requests

from errors import RemoteDeleteUnconfirmed
from utils import get_logger, sign_params

logger = get_logger("cloudinary")

API_BASE = "https://api.cloudinary.com/v1_1"
BATCH_SIZE = 3


@dataclass
class ImageFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class UploadBatch:
    index: int
    files: List[str]
    # One slot per file, None where the upload failed.
    urls: List[Optional[str]]

    @property
    def failed(self) -> List[str]:
        return [name for name, url in zip(self.files, self.urls) if url is None]


@dataclass
class UploadReport:
    urls: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    batches: int = 0

    @property
    def total(self) -> int:
        return len(self.urls) + len(self.failed)


def extract_public_id(image_url: str) -> Optional[str]:
    """
    Public id of a delivery URL: last path segment without query string or extension.

    https://res.cloudinary.com/demo/image/upload/v12345/sample.jpg -> sample
    """
    if not image_url:
        return None
    last_part = urlsplit(image_url).path.rstrip("/").split("/")[-1]
    public_id = last_part.split("?")[0].split(".")[0]
    return public_id or None


class CloudinaryService:
    """
    Image host client: unsigned preset uploads in batches of three, signed deletes.
    """
    def __init__(self, cloud_name: Optional[str], upload_preset: Optional[str],
                 api_key: Optional[str] = None, api_secret: Optional[str] = None,
                 session: Optional[requests.Session] = None, batch_size: int = BATCH_SIZE,
                 timeout: float = 30):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.api_key = api_key
        self.api_secret = api_secret
        self.session = session or requests.Session()
        self.batch_size = batch_size
        self.timeout = timeout

    # -------------------- uploads --------------------
    def upload_image(self, image: ImageFile) -> str:
        """
        Upload one file with the configured preset and return its secure URL.
        """
        if not self.cloud_name or not self.upload_preset:
            raise ValueError("Cloudinary not configured")

        resp = self.session.post(
            f"{API_BASE}/{self.cloud_name}/image/upload",
            data={"upload_preset": self.upload_preset},
            files={"file": (image.filename, image.content, image.content_type)},
            timeout=self.timeout,
        )
        if not resp.ok:
            try:
                message = (resp.json().get("error") or {}).get("message")
            except ValueError:
                message = None
            raise ValueError(message or "Image upload failed")
        return resp.json()["secure_url"]

    def _try_upload(self, image: ImageFile) -> Optional[str]:
        try:
            return self.upload_image(image)
        except (ValueError, KeyError, requests.exceptions.RequestException) as e:
            logger.warning("Upload of %s failed: %s", image.filename, e)
            return None

    def iter_upload_batches(self, images: Sequence[ImageFile]) -> Generator[UploadBatch, None, None]:
        """
        Upload `images` in waves of `batch_size`. Uploads within a wave run
        concurrently; the next wave starts only after every upload in the current
        one has settled. Each yielded batch keeps input order.
        """
        with ThreadPoolExecutor(max_workers=self.batch_size) as pool:
            for index, start in enumerate(range(0, len(images), self.batch_size)):
                batch = list(images[start:start + self.batch_size])
                urls = list(pool.map(self._try_upload, batch))
                yield UploadBatch(index=index, files=[img.filename for img in batch], urls=urls)

    def upload_many(self, images: Sequence[ImageFile]) -> UploadReport:
        """
        Upload every file and collect the URLs of the ones that succeeded, in input
        order. Failed files are listed in `failed`; nothing is retried.
        """
        report = UploadReport()
        for batch in self.iter_upload_batches(images):
            report.batches += 1
            report.urls.extend(url for url in batch.urls if url is not None)
            report.failed.extend(batch.failed)
            logger.debug("batch %d settled: %d ok, %d failed",
                         batch.index, len(batch.urls) - len(batch.failed), len(batch.failed))
        if report.failed:
            logger.warning("%d of %d image(s) failed to upload", len(report.failed), report.total)
        return report

    # -------------------- deletes --------------------
    def _destroy(self, image_url: str, timestamp: Optional[int] = None) -> None:
        if not self.cloud_name or not self.api_key or not self.api_secret:
            raise RemoteDeleteUnconfirmed("Cloudinary API Key or Secret missing. Skipping remote file deletion.")

        public_id = extract_public_id(image_url)
        if not public_id:
            raise RemoteDeleteUnconfirmed(f"Could not derive a public id from {image_url!r}")

        timestamp = timestamp if timestamp is not None else int(time.time())
        params = {"public_id": public_id, "timestamp": timestamp}
        data = {
            **params,
            "signature": sign_params(params, self.api_secret),
            "api_key": self.api_key,
        }
        try:
            resp = self.session.post(f"{API_BASE}/{self.cloud_name}/image/destroy",
                                     data=data, timeout=self.timeout)
            result = resp.json().get("result")
        except (requests.exceptions.RequestException, ValueError) as e:
            raise RemoteDeleteUnconfirmed(f"Cloudinary delete error for {public_id}: {e}") from e
        if result != "ok":
            raise RemoteDeleteUnconfirmed(f"Cloudinary answered {result!r} for {public_id}")

    def delete_image(self, image_url: str, timestamp: Optional[int] = None) -> bool:
        """
        Delete a hosted image. Never raises: returns False when the delete could not
        be confirmed, leaving the remote file orphaned.
        """
        try:
            self._destroy(image_url, timestamp=timestamp)
        except RemoteDeleteUnconfirmed as e:
            logger.warning("%s", e)
            return False
        logger.info("Deleted remote image %s", image_url)
        return True
