"""
Offline action queue.

Mutating calls that could not reach the server are stored here in
order and replayed through the raw API once connectivity returns.
Delivery is at-least-once: a failed replay stays queued with its retry
count bumped, with no limit and no backoff.
"""

import enum
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from lastmile.driver.api import DriverApi
from lastmile.driver.storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

QUEUE_STORAGE_KEY = "offline_queue"


class ActionType(str, enum.Enum):
    UPDATE_DELIVERY = "UPDATE_DELIVERY"
    UPDATE_STOP = "UPDATE_STOP"
    FINISH_ROUTE = "FINISH_ROUTE"
    CREATE_REPORT = "CREATE_REPORT"


def _now_ms() -> int:
    return int(time.time() * 1000)


class QueuedAction(BaseModel):
    """A deferred API call and its arguments."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: ActionType
    payload: Dict[str, Any]
    timestamp: int = Field(default_factory=_now_ms)
    retry_count: int = 0


class OfflineQueue:
    def __init__(self, store: KeyValueStore, api: DriverApi):
        self.store = store
        self.api = api
        self._processing = False
        self._queue: List[QueuedAction] = self._load()

    def _load(self) -> List[QueuedAction]:
        raw = self.store.get(QUEUE_STORAGE_KEY)
        if not raw:
            return []
        try:
            return [QueuedAction.model_validate(item) for item in raw]
        except (TypeError, ValidationError):
            logger.error("Stored offline queue is corrupt, starting empty", exc_info=True)
            return []

    def _save(self) -> None:
        try:
            self.store.set(QUEUE_STORAGE_KEY, [a.model_dump(mode="json") for a in self._queue])
        except StorageError:
            logger.error("Failed to persist offline queue", exc_info=True)

    @property
    def is_processing(self) -> bool:
        return self._processing

    def add_to_queue(self, action_type: ActionType, payload: Dict[str, Any]) -> QueuedAction:
        """Append an action and persist; storage failures are logged, not raised."""
        action = QueuedAction(type=ActionType(action_type), payload=dict(payload))
        self._queue.append(action)
        self._save()
        logger.info("Queued %s (%s), %d pending", action.type.value, action.id, len(self._queue))
        return action

    def get_queue_size(self) -> int:
        return len(self._queue)

    def get_queue(self) -> List[QueuedAction]:
        return [a.model_copy() for a in self._queue]

    def clear(self) -> None:
        self._queue = []
        self._save()

    async def _replay(self, action: QueuedAction, token: str) -> Any:
        payload = action.payload

        if action.type == ActionType.UPDATE_DELIVERY:
            return await self.api.update_delivery_status(
                payload["delivery_id"], payload["status"], token,
                photo_base64=payload.get("photo_base64"),
                notes=payload.get("notes"),
                collected_amount=payload.get("collected_amount"),
            )
        if action.type == ActionType.UPDATE_STOP:
            return await self.api.update_stop_status(
                payload["stop_id"], payload["status"], token,
                photo=payload.get("photo"),
                notes=payload.get("notes"),
                collected_amount=payload.get("collected_amount"),
            )
        if action.type == ActionType.FINISH_ROUTE:
            return await self.api.finish_route(payload["route_id"], token)
        if action.type == ActionType.CREATE_REPORT:
            return await self.api.create_report(payload["report_data"], token)

        raise ValueError(f"Unknown action type {action.type}")

    async def process_queue(self, token: str) -> Optional[Dict[str, int]]:
        """
        Replay queued actions in order, one at a time.

        Works on a snapshot taken at call time; actions queued while the
        pass runs wait for the next one. A call made while a pass is in
        flight, or with nothing queued, returns None.

        Returns:
            {"total", "synced", "failed"} for the snapshot
        """
        if self._processing or not self._queue:
            return None

        self._processing = True
        try:
            snapshot = list(self._queue)
            snapshot_ids = {a.id for a in snapshot}
            failed: List[QueuedAction] = []

            for action in snapshot:
                try:
                    await self._replay(action, token)
                    logger.info("Synced %s (%s)", action.type.value, action.id)
                except Exception as exc:
                    action.retry_count += 1
                    failed.append(action)
                    logger.warning(
                        "Replay of %s (%s) failed, attempt %d: %s",
                        action.type.value, action.id, action.retry_count, exc,
                    )

            added_during_pass = [a for a in self._queue if a.id not in snapshot_ids]
            self._queue = failed + added_during_pass
            self._save()

            return {
                "total": len(snapshot),
                "synced": len(snapshot) - len(failed),
                "failed": len(failed),
            }
        finally:
            self._processing = False
