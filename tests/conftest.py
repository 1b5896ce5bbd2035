"""
Shared fixtures.

FakeStorage stands in for object storage. It records every call so tests
can assert that rejected uploads never reach the network.
"""

from typing import Optional

import pytest

from videoserver.core.videos.exceptions import StorageError
from videoserver.core.videos.service import VideoService
from videoserver.core.videos.store import VideoStore
from videoserver.core.videos.validation import UploadPolicy


class FakeStorage:
    """In-memory storage that counts calls and can be told to fail."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.put_calls: list[str] = []
        self.delete_calls: list[str] = []
        self.fail_puts: Optional[str] = None
        self.fail_deletes: Optional[str] = None

    async def put_object(self, filename: str, data: bytes, content_type: str) -> str:
        self.put_calls.append(filename)
        if self.fail_puts:
            raise StorageError(f"Upload failed: {self.fail_puts}")
        self.objects[filename] = data
        return f"https://bucket.example.com/videos/{filename}"

    async def delete_object(self, filename: str) -> None:
        self.delete_calls.append(filename)
        if self.fail_deletes:
            raise StorageError(f"Delete failed: {self.fail_deletes}")
        self.objects.pop(filename, None)

    async def check_bucket(self) -> None:
        return None


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def store() -> VideoStore:
    return VideoStore()


@pytest.fixture
def service(store: VideoStore, storage: FakeStorage) -> VideoService:
    return VideoService(store=store, storage=storage, policy=UploadPolicy())
