from abc import ABC, abstractmethod
from typing import Any, Dict


class INotificationPublisher(ABC):
    """Fire-and-forget notifications (order confirmed, refund processed, ...)"""

    @abstractmethod
    async def publish(self, *, kind: str, payload: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def schedule(self, *, kind: str, payload: Dict[str, Any]) -> None:
        """Publish in the background; failures are logged, never raised to the caller"""
