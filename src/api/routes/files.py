"""
File storage API endpoints.

Thin HTTP layer over the storage gateway:
1. Upload one or more files -> presigned URLs
2. Re-issue a presigned URL or build a public URL for a stored object
3. Delete one or many objects

Object keys for uploads are generated server-side (folder/<random-id>.<ext>),
so clients must keep the returned URLs or keys if they need them later.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, Field

from ...core.files.models import DEFAULT_FOLDER, FileDescriptor
from ...infrastructure.storage.client import (
    DEFAULT_URL_EXPIRY_SECONDS,
    MAX_URL_EXPIRY_SECONDS,
    StorageError,
)
from ..dependencies import AuthenticatedUser, SettingsDep, StorageGatewayDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class UploadResponse(BaseModel):
    """URLs of uploaded files, in the order the files were sent."""
    urls: list[str] = Field(description="Presigned download URLs")


class UrlResponse(BaseModel):
    url: str = Field(description="URL for the object")


class DeleteFilesRequest(BaseModel):
    """Keys to delete in one call."""
    object_names: list[str] = Field(
        min_length=1,
        description="Object keys to delete"
    )


def _storage_failure(exc: StorageError) -> HTTPException:
    # already logged with traceback by the gateway
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=str(exc),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload files",
    description="Upload one or more files. Each is stored under folder/<random-id>.<ext>.",
)
async def upload_files(
    files: Annotated[list[UploadFile], File(description="Files to upload")],
    api_key: AuthenticatedUser,
    storage: StorageGatewayDep,
    settings: SettingsDep,
    folder: Annotated[str, Form(description="Destination folder")] = DEFAULT_FOLDER,
) -> UploadResponse:
    """
    Upload files and return presigned URLs.

    All files are uploaded concurrently. If one fails the request fails,
    but files that were already stored are not removed.
    """
    descriptors = []
    for upload in files:
        data = await upload.read()

        if len(data) > settings.max_upload_size_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"{upload.filename} too large. Maximum size: {settings.max_upload_size_mb}MB"
            )

        descriptors.append(FileDescriptor(
            buffer=data,
            size=len(data),
            mimetype=upload.content_type or "application/octet-stream",
            originalname=upload.filename or "upload",
        ))

    logger.info(
        "File upload started",
        extra={
            "file_count": len(descriptors),
            "folder": folder,
            "total_bytes": sum(d.size for d in descriptors),
        }
    )

    try:
        urls = await storage.upload_files(descriptors, folder=folder)
    except StorageError as e:
        raise _storage_failure(e)

    return UploadResponse(urls=urls)


@router.get(
    "/url",
    response_model=UrlResponse,
    summary="Get presigned URL",
)
async def get_file_url(
    object_name: Annotated[str, Query(min_length=1, description="Object key")],
    api_key: AuthenticatedUser,
    storage: StorageGatewayDep,
    expiry: Annotated[
        int,
        Query(ge=1, le=MAX_URL_EXPIRY_SECONDS, description="Validity in seconds"),
    ] = DEFAULT_URL_EXPIRY_SECONDS,
) -> UrlResponse:
    """Issue a time-limited download URL for an existing object."""
    try:
        url = await storage.get_file_url(object_name, expiry=expiry)
    except StorageError as e:
        raise _storage_failure(e)

    return UrlResponse(url=url)


@router.get(
    "/public-url",
    response_model=UrlResponse,
    summary="Get public URL",
    description="Unsigned URL. Only works if the bucket allows anonymous reads.",
)
async def get_public_url(
    object_name: Annotated[str, Query(min_length=1, description="Object key")],
    api_key: AuthenticatedUser,
    storage: StorageGatewayDep,
) -> UrlResponse:
    return UrlResponse(url=storage.get_public_url(object_name))


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete file",
)
async def delete_file(
    object_name: Annotated[str, Query(min_length=1, description="Object key")],
    api_key: AuthenticatedUser,
    storage: StorageGatewayDep,
) -> None:
    """Delete one object. Unknown keys are not an error."""
    try:
        await storage.delete_file(object_name)
    except StorageError as e:
        raise _storage_failure(e)


@router.post(
    "/delete",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete files",
)
async def delete_files(
    request: DeleteFilesRequest,
    api_key: AuthenticatedUser,
    storage: StorageGatewayDep,
) -> None:
    try:
        await storage.delete_files(request.object_names)
    except StorageError as e:
        raise _storage_failure(e)
