"""Image hosting for rendered diagrams (ImgBB)."""

from dataclasses import dataclass
from pathlib import Path

import requests

IMGBB_UPLOAD_URL = "https://api.imgbb.com/1/upload"
DEFAULT_EXPIRATION_SECONDS = 2592000  # 30 days


@dataclass
class UploadResult:
    """Outcome of one image upload."""

    success: bool
    url: str | None = None
    error: str | None = None


class ImgBBUploader:
    """Uploads PNG files to ImgBB and returns their public URL."""

    def __init__(
        self,
        api_key: str,
        expiration: int = DEFAULT_EXPIRATION_SECONDS,
        timeout: int = 30,
    ):
        self.api_key = api_key
        self.expiration = expiration
        self.timeout = timeout

    def upload(self, image_path: Path, display_name: str) -> UploadResult:
        """Upload an image. Only the documented data.url field is accepted."""
        if not image_path.exists():
            return UploadResult(success=False, error=f"Image file not found: {image_path}")

        image = image_path.read_bytes()
        if not image:
            return UploadResult(success=False, error=f"Image file is empty: {image_path}")

        try:
            response = requests.post(
                IMGBB_UPLOAD_URL,
                params={"key": self.api_key},
                data={"name": display_name, "expiration": self.expiration},
                files={"image": (image_path.name, image, "image/png")},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return UploadResult(success=False, error=f"ImgBB request failed: {e}")

        if not response.ok:
            return UploadResult(
                success=False,
                error=f"ImgBB API error ({response.status_code}): {response.text[:200]}",
            )

        try:
            body = response.json()
        except ValueError:
            return UploadResult(success=False, error="ImgBB returned a non-JSON response")

        if not isinstance(body, dict) or not body.get("success"):
            return UploadResult(success=False, error="ImgBB upload was not successful")

        url = (body.get("data") or {}).get("url")
        if not isinstance(url, str) or not url:
            return UploadResult(success=False, error="ImgBB response missing data.url")

        return UploadResult(success=True, url=url)
