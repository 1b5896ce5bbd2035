"""
Video API endpoints.

Upload, list, fetch and delete videos. Bytes go to object storage; the
records these endpoints return live in the in-memory store.

Response bodies use camelCase keys (originalName, formattedSize, ...)
because that's what the existing web frontend reads.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.datastructures import UploadFile
from starlette.types import Message, Receive

from ...core.videos.exceptions import UploadValidationError
from ...core.videos.formatting import format_file_size
from ...core.videos.models import VideoRecord
from ...core.videos.validation import Violation
from ..dependencies import VideoServiceDep

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_FIELD = "video"

# Room for boundaries, part headers and the title field
MULTIPART_OVERHEAD_BYTES = 64 * 1024


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoSummary(CamelModel):
    """Public view of a video record."""
    id: str = Field(description="Video identifier")
    title: str = Field(description="Display title")
    original_name: str = Field(description="Filename as uploaded")
    size: int = Field(description="Size in bytes")
    formatted_size: str = Field(description="Human-readable size")
    mime_type: str = Field(description="Declared content type")
    upload_date: datetime = Field(description="When the video was uploaded (UTC)")
    url: str = Field(description="Playable URL")
    duration: Optional[float] = Field(None, description="Duration in seconds, if known")
    resolution: Optional[str] = Field(None, description="WxH, if known")
    format: Optional[str] = Field(None, description="Container format")

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoSummary":
        return cls(
            id=record.id,
            title=record.title,
            original_name=record.original_name,
            size=record.size,
            formatted_size=record.formatted_size,
            mime_type=record.mime_type,
            upload_date=record.upload_date,
            url=record.url,
            duration=record.duration,
            resolution=record.resolution,
            format=record.format,
        )


class VideoListResponse(CamelModel):
    success: bool = True
    count: int = Field(description="Number of videos")
    videos: list[VideoSummary]


class VideoResponse(CamelModel):
    success: bool = True
    video: VideoSummary


class UploadResponse(CamelModel):
    success: bool = True
    message: str
    video: VideoSummary


class DeletedVideo(CamelModel):
    id: str
    title: str


class DeleteResponse(CamelModel):
    success: bool = True
    message: str
    deleted_video: DeletedVideo


class ClearResponse(CamelModel):
    success: bool = True
    message: str
    count: int = Field(description="Number of videos removed")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _single_upload(form) -> tuple[UploadFile, Optional[str]]:
    """
    Pull the one uploaded file and the optional title out of a form.

    Exactly one file part is allowed, and it must use the "video" field.
    """
    files = [
        (key, value) for key, value in form.multi_items()
        if isinstance(value, UploadFile)
    ]

    if len(files) > 1:
        raise UploadValidationError(
            "Only one file can be uploaded at a time",
            violation=Violation.TOO_MANY_FILES,
        )
    if not files or files[0][0] != UPLOAD_FIELD:
        raise UploadValidationError(
            f"No file selected. Send the video in the '{UPLOAD_FIELD}' field",
            violation=Violation.MISSING_FILE,
        )

    title = form.get("title")
    return files[0][1], title if isinstance(title, str) else None


def _body_too_large(max_size_bytes: int) -> UploadValidationError:
    return UploadValidationError(
        f"File too large. Maximum size is {format_file_size(max_size_bytes)}",
        violation=Violation.FILE_TOO_LARGE,
    )


def limit_body_size(receive: Receive, limit: int, max_size_bytes: int) -> Receive:
    """
    Wrap an ASGI receive callable so the request body stops at limit bytes.

    Covers chunked requests that carry no Content-Length. Reading stops
    at the first chunk that crosses the limit.
    """
    received = 0

    async def capped_receive() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise _body_too_large(max_size_bytes)
        return message

    return capped_receive


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/videos",
    response_model=VideoListResponse,
    status_code=status.HTTP_200_OK,
    summary="List videos",
)
async def list_videos(service: VideoServiceDep) -> VideoListResponse:
    """All registered videos. No pagination."""
    videos = [VideoSummary.from_record(record) for record in service.list_videos()]
    return VideoListResponse(count=len(videos), videos=videos)


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Get one video",
)
async def get_video(video_id: str, service: VideoServiceDep) -> VideoResponse:
    record = service.get_video(video_id)
    return VideoResponse(video=VideoSummary.from_record(record))


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a video",
    description="Multipart upload: file in the 'video' field, optional 'title'",
)
async def upload_video(request: Request, service: VideoServiceDep) -> UploadResponse:
    """
    Upload a video to object storage and register it.

    A Content-Length past the size limit (plus multipart overhead) is
    rejected before the body is read. Without one, parsing stops as soon
    as the streamed body crosses that bound.
    """
    max_size = service.policy.max_size_bytes
    body_limit = max_size + MULTIPART_OVERHEAD_BYTES

    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > body_limit:
        logger.info(
            "Upload rejected from Content-Length",
            extra={"content_length": int(declared), "limit": body_limit}
        )
        raise _body_too_large(max_size)

    capped = Request(request.scope, limit_body_size(request.receive, body_limit, max_size))
    form = await capped.form()
    try:
        upload, title = _single_upload(form)

        if upload.size is not None:
            service.validate(upload.content_type, upload.filename, upload.size)

        data = await upload.read()
        record = await service.upload(
            data=data,
            original_name=upload.filename or "",
            content_type=upload.content_type or "application/octet-stream",
            title=title,
        )
    finally:
        await form.close()

    return UploadResponse(
        message="Video uploaded successfully",
        video=VideoSummary.from_record(record),
    )


@router.delete(
    "/videos/{video_id}",
    response_model=DeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete a video",
)
async def delete_video(video_id: str, service: VideoServiceDep) -> DeleteResponse:
    """
    Delete a video from storage and the index.

    A storage failure is logged but the record is still removed, unless
    strict deletes are configured.
    """
    record = await service.delete(video_id)
    return DeleteResponse(
        message="Video deleted successfully",
        deleted_video=DeletedVideo(id=record.id, title=record.title),
    )


@router.delete(
    "/videos",
    response_model=ClearResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete all videos",
    description="Removes every video except presets",
)
async def clear_videos(service: VideoServiceDep) -> ClearResponse:
    count = await service.clear()
    return ClearResponse(message=f"Cleared all videos ({count})", count=count)
