"""In-Memory Response Sink — ResponseSink implementation that keeps responses per task.

Invariants:
    - Responses stored in arrival order per task_id
    - Primary and summary responses kept apart (is_summary flag)

Design Decisions:
    - Process-local dict: durable storage belongs to the embedding application
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

from agent_iteration.schemas.conversation import GenerationResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredResponse:
    task_id: str
    response: GenerationResponse
    is_summary: bool


class InMemoryResponseSink:
    """Collects responses handed over by the orchestrator."""

    def __init__(self) -> None:
        self._by_task: dict[str, list[StoredResponse]] = defaultdict(list)

    async def save_response(
        self, task_id: str, response: GenerationResponse, *, is_summary: bool,
    ) -> None:
        self._by_task[task_id].append(
            StoredResponse(task_id, response, is_summary),
        )
        logger.debug(
            "Stored %s response", "summary" if is_summary else "agent",
            extra={"task_id": task_id},
        )

    def responses(self, task_id: str) -> list[StoredResponse]:
        return list(self._by_task.get(task_id, []))

    def latest_summary(self, task_id: str) -> GenerationResponse | None:
        for stored in reversed(self._by_task.get(task_id, [])):
            if stored.is_summary:
                return stored.response
        return None
