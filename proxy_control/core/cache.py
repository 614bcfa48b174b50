"""Time-limited cache of the NAT classification."""

import structlog

from proxy_control.core.timer import ExclusiveTimer

logger = structlog.get_logger(__name__)


class NatTypeCache:
    """
    Last known NAT classification with one invalidation timer.

    An empty value means unknown.
    """

    def __init__(self, ttl: float) -> None:
        """
        Args:
            ttl: Seconds a stored value stays valid.
        """
        self._ttl = ttl
        self._value = ""
        self._timer = ExclusiveTimer()

    @property
    def value(self) -> str:
        return self._value

    @property
    def invalidation_pending(self) -> bool:
        return self._timer.pending

    def set(self, value: str) -> None:
        """Store ``value`` and restart the invalidation timer."""
        self._value = value
        self._timer.schedule(self._ttl, self.clear)

    def clear(self) -> None:
        """Forget the stored value and cancel any pending invalidation."""
        if self._value:
            logger.debug("NAT type cache cleared")
        self._value = ""
        self._timer.cancel()

    def __bool__(self) -> bool:
        return bool(self._value)
