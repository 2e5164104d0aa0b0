"""
Supabase Storage client (supabase-py SDK)
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi.concurrency import run_in_threadpool
from supabase import Client, create_client

from easyprop.core.config import settings
from easyprop.core.exceptions import ConfigurationException, StorageException, ValidationException
from easyprop.core.logging import get_logger
from easyprop.utils.ids import current_millis

logger = get_logger(__name__)

IMAGE_MIME_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"]

# (filename, content, content_type)
UploadFile = Tuple[str, bytes, str]


def file_extension(filename: str, default: str = "jpg") -> str:
    if "." not in (filename or ""):
        return default
    return filename.rsplit(".", 1)[-1].lower() or default


class SupabaseStorageClient:
    """Uploads objects to Supabase Storage buckets and returns their public URLs"""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None):
        self.base_url = (base_url if base_url is not None else settings.SUPABASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.SUPABASE_KEY
        self._client: Optional[Client] = None

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    @property
    def client(self) -> Client:
        if not self.configured:
            raise ConfigurationException("Supabase storage is not configured")
        if self._client is None:
            self._client = create_client(self.base_url, self.api_key)
        return self._client

    def public_url(self, bucket: str, path: str) -> str:
        return self.client.storage.from_(bucket).get_public_url(path)

    def _upload(self, bucket: str, path: str, content: bytes, content_type: str, upsert: bool) -> str:
        try:
            self.client.storage.from_(bucket).upload(
                path,
                content,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "true" if upsert else "false",
                },
            )
        except ConfigurationException:
            raise
        except Exception as e:
            logger.error("Storage upload failed", bucket=bucket, path=path, error=str(e))
            raise StorageException("Failed to upload file", details={"bucket": bucket, "path": path}) from e

        logger.info("Uploaded file to storage", bucket=bucket, path=path)
        return self.public_url(bucket, path)

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: str,
        bucket: Optional[str] = None,
        upsert: bool = False
    ) -> str:
        """
        Upload one object

        Args:
            path: Object path inside the bucket
            content: Raw bytes
            content_type: MIME type stored with the object
            bucket: Target bucket, defaults to the property image bucket
            upsert: Overwrite an existing object at the same path

        Returns:
            Public URL of the stored object
        """
        bucket = bucket or settings.SUPABASE_STORAGE_BUCKET
        return await run_in_threadpool(self._upload, bucket, path, content, content_type, upsert)

    async def upload_property_images(self, uid: str, files: Sequence[UploadFile]) -> List[str]:
        """Upload listing images in order; non-image files are skipped."""
        urls = []
        for index, (filename, content, content_type) in enumerate(files):
            if not (content_type or "").startswith("image/"):
                logger.warning("Skipping non-image upload", filename=filename, content_type=content_type)
                continue
            name = f"{uid}_{current_millis()}_{index}.{file_extension(filename)}"
            urls.append(await self.upload(f"properties/{uid}/{name}", content, content_type))
        return urls

    async def upload_profile_photo(self, uid: str, filename: str, content: bytes, content_type: str) -> str:
        if not (content_type or "").startswith("image/"):
            raise ValidationException("Invalid file type. Please upload an image.")
        if len(content) > settings.MAX_PROFILE_PHOTO_BYTES:
            raise ValidationException("File size too large. Please upload an image smaller than 5MB.")

        name = f"profile_{uid}_{current_millis()}.{file_extension(filename)}"
        return await self.upload(
            f"profiles/{uid}/{name}",
            content,
            content_type,
            bucket=settings.SUPABASE_PROFILE_BUCKET,
            upsert=True,
        )

    def ensure_bucket(self, bucket: str, public: bool = True, file_size_limit: Optional[int] = None) -> Dict[str, Any]:
        """Create a public image bucket unless it already exists."""
        storage = self.client.storage
        options: Dict[str, Any] = {"public": public, "allowed_mime_types": IMAGE_MIME_TYPES}
        if file_size_limit:
            options["file_size_limit"] = file_size_limit

        try:
            if any(existing.id == bucket for existing in storage.list_buckets()):
                logger.info("Storage bucket already exists", bucket=bucket)
                return {"bucket": bucket, "created": False}
            storage.create_bucket(bucket, options=options)
        except Exception as e:
            logger.error("Bucket setup failed", bucket=bucket, error=str(e))
            raise StorageException("Failed to create storage bucket", details={"bucket": bucket}) from e

        logger.info("Created storage bucket", bucket=bucket)
        return {"bucket": bucket, "created": True}

    def ensure_buckets(self) -> List[Dict[str, Any]]:
        """Create the property image and profile photo buckets."""
        return [
            self.ensure_bucket(settings.SUPABASE_STORAGE_BUCKET),
            self.ensure_bucket(settings.SUPABASE_PROFILE_BUCKET, file_size_limit=settings.MAX_PROFILE_PHOTO_BYTES),
        ]


storage_client = SupabaseStorageClient()
