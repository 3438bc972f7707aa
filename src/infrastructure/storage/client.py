"""
Object storage gateway for uploaded files.

Talks to MinIO through boto3's S3 client, since MinIO speaks the S3 API.
The gateway owns exactly one client and one bucket name; every operation
is a thin pass-through to an SDK call, plus URL rewriting for deployments
where MinIO sits behind a reverse proxy under a /minio path prefix.

Thread-safety contract: boto3 low-level clients are safe to share between
threads, and the gateway relies on that. Blocking SDK calls run in worker
threads via asyncio.to_thread, so one gateway can serve many concurrent
requests. Nothing here retries or sets its own timeouts; botocore's
defaults apply.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Iterable, Optional, Sequence, Union
from urllib.parse import quote, urlsplit

from ...core.files.models import DEFAULT_FOLDER, FileDescriptor, build_object_name

logger = logging.getLogger(__name__)

DEFAULT_URL_EXPIRY_SECONDS = 7 * 24 * 60 * 60
# SigV4 presigned URLs cannot outlive 7 days
MAX_URL_EXPIRY_SECONDS = 7 * 24 * 60 * 60

# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000

EXTERNAL_PATH_PREFIX = "/minio"
DEFAULT_REGION = "us-east-1"

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


class StorageUnavailable(StorageError):
    """The bucket could not be checked or created at startup."""
    pass


class UploadFailed(StorageError):
    pass


class UrlGenerationFailed(StorageError):
    pass


class DeleteFailed(StorageError):
    pass


@dataclass(frozen=True)
class StorageConfig:
    """
    Connection configuration for the MinIO endpoint.

    Immutable once built. The caller decides where the values come from
    (see config.settings.Settings.storage_config).
    """
    endpoint: str
    port: int
    use_ssl: bool
    access_key: str
    secret_key: str
    bucket_name: str
    external_base_url: Optional[str] = None
    region: str = DEFAULT_REGION

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def endpoint_url(self) -> str:
        """Internal endpoint, e.g. http://minio:9000"""
        return f"{self.scheme}://{self.endpoint}:{self.port}"

    @property
    def external_prefix(self) -> Optional[str]:
        """External base plus the proxy path prefix, or None."""
        if not self.external_base_url:
            return None
        return self.external_base_url.rstrip("/") + EXTERNAL_PATH_PREFIX


def _error_code(exc: Exception) -> Optional[str]:
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    return response.get("Error", {}).get("Code")


def _expiry_seconds(expiry: Union[int, timedelta]) -> int:
    if isinstance(expiry, timedelta):
        seconds = int(expiry.total_seconds())
    else:
        seconds = int(expiry)
    if not 1 <= seconds <= MAX_URL_EXPIRY_SECONDS:
        raise ValueError(
            f"URL expiry must be between 1 and {MAX_URL_EXPIRY_SECONDS} seconds, got {seconds}"
        )
    return seconds


class ObjectStorageGateway:
    """
    Facade over one MinIO bucket.

    Call ensure_bucket_exists() once at startup before serving uploads
    or deletes. The FastAPI lifespan in main.py does this.
    """

    def __init__(self, config: StorageConfig, s3_client: Any = None) -> None:
        """
        Initialize the gateway.

        A prebuilt S3 client can be injected (tests, or sharing one client
        between components). Otherwise one is created with boto3.
        """
        self._config = config
        self._s3_client = s3_client if s3_client is not None else self._create_s3_client(config)

        logger.info(
            "Initialized object storage gateway",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
                "external_base_url": config.external_base_url,
            }
        )

    @staticmethod
    def _create_s3_client(config: StorageConfig) -> Any:
        import boto3
        from botocore.config import Config

        # MinIO needs v4 signatures and path-style addressing
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        )

        return boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=boto_config,
        )

    @property
    def config(self) -> StorageConfig:
        return self._config

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    # -----------------------------------------------------------------------
    # Bucket bootstrap
    # -----------------------------------------------------------------------

    async def ensure_bucket_exists(self) -> None:
        """
        Create the bucket if it does not exist yet.

        Idempotent: an existing bucket is left alone. Raises
        StorageUnavailable if the check or the creation fails.
        """
        try:
            exists = await asyncio.to_thread(self._bucket_exists)
            if exists:
                logger.debug("Bucket exists", extra={"bucket": self.bucket_name})
                return

            await asyncio.to_thread(self._create_bucket)
            logger.info("Created bucket", extra={"bucket": self.bucket_name})

        except Exception as e:
            logger.error(
                "Failed to ensure bucket exists",
                extra={"bucket": self.bucket_name, "error": str(e)},
                exc_info=True,
            )
            raise StorageUnavailable(f"Bucket {self.bucket_name} unavailable: {e}") from e

    async def check_bucket(self) -> None:
        """
        Read-only bucket check for readiness probes.

        Never creates anything. Raises StorageUnavailable if the bucket
        is missing or the check itself fails.
        """
        try:
            exists = await asyncio.to_thread(self._bucket_exists)
        except Exception as e:
            logger.warning(
                "Bucket check failed",
                extra={"bucket": self.bucket_name, "error": str(e)},
            )
            raise StorageUnavailable(f"Bucket {self.bucket_name} unavailable: {e}") from e

        if not exists:
            logger.warning("Bucket missing", extra={"bucket": self.bucket_name})
            raise StorageUnavailable(f"Bucket {self.bucket_name} does not exist")

    def _bucket_exists(self) -> bool:
        try:
            self._s3_client.head_bucket(Bucket=self.bucket_name)
            return True
        except Exception as e:
            if _error_code(e) in _MISSING_BUCKET_CODES:
                return False
            raise

    def _create_bucket(self) -> None:
        params: dict[str, Any] = {"Bucket": self.bucket_name}
        if self._config.region != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {
                "LocationConstraint": self._config.region,
            }

        try:
            self._s3_client.create_bucket(**params)
        except Exception as e:
            # lost a race with another process creating the same bucket
            if _error_code(e) == "BucketAlreadyOwnedByYou":
                return
            raise

    # -----------------------------------------------------------------------
    # Uploads
    # -----------------------------------------------------------------------

    async def upload_file(self, file: FileDescriptor, object_name: str) -> str:
        """
        Upload one file under object_name and return a presigned URL for it.

        Content type and the original filename are stored as object
        metadata. The put is atomic: on failure no object is left behind.
        """
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self.bucket_name,
                Key=object_name,
                Body=file.buffer,
                ContentLength=file.size,
                ContentType=file.mimetype,
                # header values must be ASCII
                Metadata={"original-name": quote(file.originalname)},
            )

            logger.info(
                "Uploaded file",
                extra={
                    "object_name": object_name,
                    "size_bytes": file.size,
                    "content_type": file.mimetype,
                }
            )

        except Exception as e:
            logger.error(
                "Failed to upload file",
                extra={"object_name": object_name, "error": str(e)},
                exc_info=True,
            )
            raise UploadFailed(f"Upload of {object_name} failed: {e}") from e

        try:
            return await self.get_file_url(object_name)
        except UrlGenerationFailed as e:
            # already logged by get_file_url; the object stays stored
            raise UploadFailed(f"Upload of {object_name} failed: {e}") from e

    async def upload_files(
        self,
        files: Sequence[FileDescriptor],
        folder: str = DEFAULT_FOLDER,
    ) -> list[str]:
        """
        Upload several files concurrently under folder/<random-id>.<ext>.

        URLs come back in input order. The call returns only after every
        upload has settled. If any failed, the first failure in input
        order is raised; successful uploads are NOT removed, so a failed
        batch leaves the other objects in the bucket.
        """
        uploads = [
            self.upload_file(file, build_object_name(file.originalname, folder))
            for file in files
        ]
        if not uploads:
            return []

        results = await asyncio.gather(*uploads, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

        return list(results)

    # -----------------------------------------------------------------------
    # URLs
    # -----------------------------------------------------------------------

    async def get_file_url(
        self,
        object_name: str,
        expiry: Union[int, timedelta] = DEFAULT_URL_EXPIRY_SECONDS,
    ) -> str:
        """
        Generate a presigned GET URL valid for expiry seconds.

        With an external base URL configured, the scheme and host of the
        signed URL are swapped for <external-base>/minio. Path, query and
        signature are kept as-is, so the proxy must forward /minio/...
        to MinIO without rewriting the rest of the request.
        """
        expires_in = _expiry_seconds(expiry)

        try:
            url = self._s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": object_name},
                ExpiresIn=expires_in,
            )
        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"object_name": object_name, "error": str(e)},
                exc_info=True,
            )
            raise UrlGenerationFailed(f"Presigned URL generation failed: {e}") from e

        return self._externalize(url)

    def _externalize(self, url: str) -> str:
        external = self._config.external_prefix
        if external is None:
            return url

        parts = urlsplit(url)
        internal_base = f"{parts.scheme}://{parts.netloc}"
        return url.replace(internal_base, external, 1)

    def get_public_url(self, object_name: str) -> str:
        """
        Build an unsigned URL for an object. No network call.

        Only useful if the bucket (or object) is publicly readable, which
        this gateway does not check.
        """
        external = self._config.external_prefix
        if external is not None:
            return f"{external}/{self.bucket_name}/{object_name}"

        return f"{self._config.endpoint_url}/{self.bucket_name}/{object_name}"

    # -----------------------------------------------------------------------
    # Deletes
    # -----------------------------------------------------------------------

    async def delete_file(self, object_name: str) -> None:
        """Delete one object. Deleting a missing key is not an error."""
        try:
            await asyncio.to_thread(
                self._s3_client.delete_object,
                Bucket=self.bucket_name,
                Key=object_name,
            )
            logger.info("Deleted file", extra={"object_name": object_name})

        except Exception as e:
            logger.error(
                "Failed to delete file",
                extra={"object_name": object_name, "error": str(e)},
                exc_info=True,
            )
            raise DeleteFailed(f"Delete of {object_name} failed: {e}") from e

    async def delete_files(self, object_names: Iterable[str]) -> None:
        """
        Delete many objects with batched DeleteObjects requests.

        Per-key errors reported by the server fail the whole call with
        DeleteFailed. Batches sent before the failing one stay deleted.
        """
        names = list(object_names)
        if not names:
            return

        try:
            for start in range(0, len(names), DELETE_BATCH_SIZE):
                batch = names[start:start + DELETE_BATCH_SIZE]
                response = await asyncio.to_thread(
                    self._s3_client.delete_objects,
                    Bucket=self.bucket_name,
                    Delete={
                        "Objects": [{"Key": name} for name in batch],
                        "Quiet": True,
                    },
                )

                errors = (response or {}).get("Errors") or []
                if errors:
                    failed = ", ".join(
                        f"{err.get('Key')} ({err.get('Code')})" for err in errors
                    )
                    raise DeleteFailed(f"Could not delete: {failed}")

            logger.info(
                "Deleted files",
                extra={"bucket": self.bucket_name, "count": len(names)}
            )

        except Exception as e:
            logger.error(
                "Failed to delete files",
                extra={"count": len(names), "error": str(e)},
                exc_info=True,
            )
            if isinstance(e, DeleteFailed):
                raise
            raise DeleteFailed(f"Batch delete failed: {e}") from e


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_gateway(config: StorageConfig) -> ObjectStorageGateway:
    """
    Create the storage gateway for a configuration.

    Kept as a factory so main.py and the dependency layer share one
    construction path.
    """
    return ObjectStorageGateway(config)
