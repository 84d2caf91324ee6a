from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from linesheets.models.models import MessageRecord, MessageStats, MessageStatus


class MessageRepository(ABC):
    @abstractmethod
    def insert(self, content: str, sender_id: Optional[str] = None,
               status: MessageStatus = MessageStatus.PROCESSING) -> int:
        ...

    @abstractmethod
    def update(self, message_id: int, **fields: Any) -> None:
        """Actualiza campos; si incluye `status` la transición debe ser válida."""
        ...

    @abstractmethod
    def get(self, message_id: int) -> Optional[MessageRecord]:
        ...

    @abstractmethod
    def query(self, filters: Optional[Dict[str, Any]] = None, limit: int = 100) -> List[MessageRecord]:
        ...

    @abstractmethod
    def get_stats(self) -> MessageStats:
        ...

    @abstractmethod
    def ping(self) -> bool:
        ...

    def mark_failed(self, message_id: int, error_message: str, **fields: Any) -> None:
        self.update(message_id, status=MessageStatus.FAILED, error_message=error_message, **fields)
