"""
Editor session wiring for the context menu.

One session per open editor: it owns the buffer, the action registry, the
menu controller and triggers, the AI client and the fact-check orchestrator.
Nothing is shared between sessions.
"""

from typing import List, Optional

import httpx
import structlog

from core.config import AI_BASE_URL
from services.ai_client import AIServiceClient
from services.context_actions import ContextActionExecutor, register_default_actions
from services.context_menu import ActionRegistry, ContextMenuController, ContextMenuTriggers
from services.editor_buffer import EditorBuffer
from services.fact_check import FactCheckOrchestrator

logger = structlog.get_logger(__name__)


class EditorSession:
    def __init__(
        self,
        text: str = "",
        *,
        client: Optional[AIServiceClient] = None,
        base_url: str = AI_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._owns_client = client is None
        self.client = client or AIServiceClient(base_url, transport=transport)
        self.buffer = EditorBuffer(text)
        self.registry = ActionRegistry()
        self.controller = ContextMenuController(self.registry)
        self.triggers = ContextMenuTriggers(self.controller, self.buffer)
        self.executor = ContextActionExecutor(self.client)
        self.fact_check = FactCheckOrchestrator(self.client)
        self._registered: List[str] = []

    @property
    def is_open(self) -> bool:
        return bool(self._registered)

    def open(self) -> None:
        """Register the default actions and fact-check; idempotent."""
        if self._registered:
            return
        ids = register_default_actions(self.registry, self.executor)
        fact_check_action = self.fact_check.as_action()
        self.registry.register(fact_check_action)
        self._registered = ids + [fact_check_action.id]
        logger.info("Editor session opened", actions=len(self._registered))

    async def close(self) -> None:
        """Unregister this session's actions and release the AI client."""
        for action_id in self._registered:
            self.registry.unregister(action_id)
        self._registered = []
        self.triggers.dispose()
        if self.controller.is_open:
            self.controller.hide_menu()
        if self._owns_client:
            await self.client.aclose()
        logger.info("Editor session closed")

    async def __aenter__(self) -> "EditorSession":
        self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
