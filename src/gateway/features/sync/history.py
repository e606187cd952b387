from collections import deque
from typing import List, Optional

from fastapi import Request

from ...core import config
from .schemas import SyncRun


class SyncHistory:
    """The most recent reconciliation runs of this process, oldest dropped first."""

    def __init__(self, size: int = config.SYNC_HISTORY_SIZE):
        self._runs = deque(maxlen=max(1, size))

    def __len__(self) -> int:
        return len(self._runs)

    def record(self, run: SyncRun) -> SyncRun:
        self._runs.append(run)
        return run

    def recent(self, limit: Optional[int] = None) -> List[SyncRun]:
        runs = list(reversed(self._runs))
        return runs[:limit] if limit else runs


def get_sync_history(request: Request) -> SyncHistory:
    return request.app.state.sync_history
