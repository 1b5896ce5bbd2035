"""
In-memory metadata store.

Records live for the lifetime of the process. The store is shared by all
requests, so every access goes through a lock. The lock is only held for
the dictionary operation itself; callers never hold it across a storage
call.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, Optional

from .models import VideoRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreStats:
    """Aggregate numbers for the service banner."""
    count: int
    total_size: int


class VideoStore:
    """
    Ordered, lock-guarded mapping of video id to record.

    Each method corresponds to one thing the service needs:
    - insert: register an uploaded video
    - get: look one up by id
    - remove / remove_many: drop records after their objects are deleted
    - list: snapshot for listing endpoints
    """

    def __init__(self, newest_first: bool = False) -> None:
        self._records: "OrderedDict[str, VideoRecord]" = OrderedDict()
        self._lock = threading.Lock()
        self._newest_first = newest_first

    def insert(self, record: VideoRecord) -> None:
        """
        Add a record.

        Raises ValueError if the id or storage key is already present;
        both must be unique for the life of the process.
        """
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"Duplicate video id: {record.id}")
            if any(r.filename == record.filename for r in self._records.values()):
                raise ValueError(f"Duplicate storage key: {record.filename}")
            self._records[record.id] = record

        logger.debug("Inserted video record", extra={"video_id": record.id})

    def get(self, video_id: str) -> Optional[VideoRecord]:
        with self._lock:
            return self._records.get(video_id)

    def remove(self, video_id: str) -> Optional[VideoRecord]:
        """Remove and return a record, or None if it was already gone."""
        with self._lock:
            return self._records.pop(video_id, None)

    def remove_many(self, video_ids: Iterable[str]) -> list[VideoRecord]:
        """Remove the given records; ids no longer present are skipped."""
        removed = []
        with self._lock:
            for video_id in video_ids:
                record = self._records.pop(video_id, None)
                if record is not None:
                    removed.append(record)
        return removed

    def list(self) -> list[VideoRecord]:
        with self._lock:
            records = list(self._records.values())
        if self._newest_first:
            records.reverse()
        return records

    def stats(self) -> StoreStats:
        with self._lock:
            return StoreStats(
                count=len(self._records),
                total_size=sum(r.size for r in self._records.values()),
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
