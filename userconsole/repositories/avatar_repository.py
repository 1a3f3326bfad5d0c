"""
Avatar Repository.

Object storage for profile pictures.  Objects are addressed by name
(``<user_id>/<epoch_ms>.<ext>``) and served through the bucket's public
URL, so the URL stored on the ``users`` row is all a view needs.
"""

from __future__ import annotations

import time

from userconsole.backend import BackendClient
from userconsole.exceptions import StorageError
from userconsole.logger import StructuredLogger
from userconsole.repositories.base_repository import BaseRepository


class AvatarRepository(BaseRepository):
    """Uploads avatar images and derives their public URLs.

    Parameters
    ----------
    bucket:
        Storage bucket name (``profile-pictures``).
    cache_control:
        ``Cache-Control`` max-age in seconds, as a string.
    """

    def __init__(
        self,
        backend: BackendClient,
        logger: StructuredLogger,
        bucket: str,
        cache_control: str = "3600",
    ) -> None:
        super().__init__(backend, logger)
        self._bucket = bucket
        self._cache_control = cache_control

    @staticmethod
    def object_path(user_id: str, extension: str) -> str:
        """New unique object name under the user's folder."""
        return f"{user_id}/{int(time.time() * 1000)}.{extension}"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload *data* to *path* and return its public URL.

        Never overwrites: an existing object at *path* is a
        ``StorageError``.
        """
        def _op() -> str:
            bucket = self.supabase.storage.from_(self._bucket)
            bucket.upload(
                path=path,
                file=data,
                file_options={
                    "cache-control": self._cache_control,
                    "content-type": content_type,
                    "upsert": "false",
                },
            )
            url = bucket.get_public_url(path)
            if not url:
                raise StorageError(f"No public URL for {self._bucket}/{path}.")
            return url

        url = self._execute(
            _op, operation_name=f"upload ({self._bucket})", error_cls=StorageError,
        )
        self._logger.info("Avatar uploaded: %s/%s (%d bytes)", self._bucket, path, len(data))
        return url
