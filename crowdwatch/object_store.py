# crowdwatch/object_store.py
import hashlib
import hmac
import time
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from crowdwatch.config.settings import SIGNED_URL_TTL_S, SIGNING_SECRET, VIDEO_DIR

FILES_WEB_PREFIX = "/api/v1/videos/files"


class LocalObjectStore:
    """
    Disk-backed object store for uploaded videos.
    Keys look like "<user_id>/<video_id>.<ext>"; access from the browser goes
    through HMAC-signed, expiring URLs.
    """

    def __init__(self, root: Path = VIDEO_DIR, secret: str = SIGNING_SECRET):
        self.root = Path(root).resolve()
        self.secret = secret.encode("utf-8")

    def path_for(self, key: str) -> Path:
        """Absolute path for a key; refuses keys escaping the store root."""
        path = (self.root / key.lstrip("/\\")).resolve()
        if self.root not in path.parents:
            raise ValueError(f"invalid object key: {key}")
        return path

    def prepare(self, key: str) -> Path:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def exists(self, key: str) -> bool:
        try:
            return self.path_for(key).is_file()
        except ValueError:
            return False

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    # -------------------------------
    # Signed URLs
    # -------------------------------
    def _signature(self, key: str, expires: int) -> str:
        msg = f"{key}:{expires}".encode("utf-8")
        return hmac.new(self.secret, msg, hashlib.sha256).hexdigest()

    def signed_url(self, key: str, expires_in: int = SIGNED_URL_TTL_S, now: Optional[float] = None) -> str:
        expires = int((now if now is not None else time.time()) + expires_in)
        return f"{FILES_WEB_PREFIX}/{quote(key)}?expires={expires}&signature={self._signature(key, expires)}"

    def verify(self, key: str, expires: int, signature: str, now: Optional[float] = None) -> bool:
        if expires < (now if now is not None else time.time()):
            return False
        return hmac.compare_digest(self._signature(key, expires), signature or "")


store = LocalObjectStore()
