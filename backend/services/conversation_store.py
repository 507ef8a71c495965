"""In-memory conversation history store."""
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List

from models.conversation import ConversationTurn, ROLES

logger = logging.getLogger(__name__)


class ConversationStore:
    """
    Process-local store mapping a conversation id to its most recent turns.

    Each history is bounded to ``max_messages`` turns; appending beyond the
    bound discards the oldest turns first. Operations on one conversation id
    are serialized by a per-id lock. Histories live until cleared or until the
    process exits; the set of ids is never pruned.
    """

    def __init__(self, max_messages: int = 10):
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")

        self.max_messages = max_messages
        self._histories: Dict[str, Deque[ConversationTurn]] = {}
        # One lock per id ever appended to; kept after clear() so a waiting
        # writer and a new writer never hold different locks for one id.
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, conversation_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[conversation_id] = lock
            return lock

    def append(self, conversation_id: str, role: str, content: str) -> ConversationTurn:
        """
        Record a turn at the end of a conversation's history.

        Args:
            conversation_id: ID of the conversation (created if absent)
            role: "user" or "assistant"
            content: Message text

        Returns:
            The recorded ConversationTurn
        """
        if role not in ROLES:
            raise ValueError(f"Unknown conversation role: {role!r}")

        turn = ConversationTurn(
            role=role,
            content=content,
            timestamp=datetime.now(timezone.utc)
        )

        with self._lock_for(conversation_id):
            with self._registry_lock:
                history = self._histories.get(conversation_id)
                if history is None:
                    history = deque(maxlen=self.max_messages)
                    self._histories[conversation_id] = history
            # deque(maxlen) drops from the left on overflow
            history.append(turn)
            size = len(history)

        logger.debug(f"Added {role} turn to conversation {conversation_id} ({size} stored)")
        return turn

    def get(self, conversation_id: str) -> List[ConversationTurn]:
        """
        Get the turns of a conversation in chronological order.

        Returns an empty list for unknown ids without creating an entry.
        """
        with self._registry_lock:
            lock = self._locks.get(conversation_id)
        if lock is None:
            return []

        with lock:
            history = self._histories.get(conversation_id)
            return list(history) if history else []

    def clear(self, conversation_id: str) -> None:
        """Remove a conversation entirely. Clearing an unknown id is a no-op."""
        with self._registry_lock:
            lock = self._locks.get(conversation_id)
        if lock is None:
            return

        with lock:
            with self._registry_lock:
                removed = self._histories.pop(conversation_id, None)

        if removed is not None:
            logger.info(f"Cleared conversation {conversation_id}")

    def list_ids(self) -> List[str]:
        """Return all conversation ids currently held."""
        with self._registry_lock:
            return list(self._histories.keys())
