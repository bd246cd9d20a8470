"""Broadcast dispatcher - fans one message out to every session"""

import asyncio
import logging
from enum import Enum
from typing import Dict, Optional

from .models import Message
from .orchestrator import ChatOrchestrator

logger = logging.getLogger(__name__)


class SendMode(str, Enum):
    """How user input is routed to sessions"""

    INDIVIDUAL = "individual"
    BROADCAST = "broadcast"


class BroadcastDispatcher:
    """Sends the same text to all sessions concurrently

    Each session's send is independent: sends start together, their results
    land in their own logs as they resolve, and a failure in one send never
    touches the others.
    """

    def __init__(self, orchestrator: ChatOrchestrator, mode: SendMode = SendMode.INDIVIDUAL):
        self.orchestrator = orchestrator
        self.mode = SendMode(mode)

    def set_mode(self, mode) -> SendMode:
        self.mode = SendMode(mode)
        logger.info("Send mode set to %s", self.mode.value)
        return self.mode

    async def _send_isolated(self, session_id: int, text: str) -> Optional[Message]:
        try:
            return await self.orchestrator.send_message(session_id, text)
        except Exception:
            logger.exception("Broadcast send to session %d failed", session_id)
            return None

    async def dispatch(self, text: str) -> Dict[int, Optional[Message]]:
        """Send text to every existing session (broadcast mode only)

        Returns:
            dict: session id → reply (None for sessions that sent nothing)
        """
        if not text or not text.strip():
            return {}
        if self.mode != SendMode.BROADCAST:
            logger.debug("Ignoring broadcast in %s mode", self.mode.value)
            return {}

        session_ids = self.orchestrator.store.ids
        logger.info("Broadcasting to %d sessions", len(session_ids))
        replies = await asyncio.gather(
            *(self._send_isolated(session_id, text) for session_id in session_ids)
        )
        return dict(zip(session_ids, replies))
