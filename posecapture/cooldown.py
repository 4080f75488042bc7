"""Minimum time gap between automatic captures."""

from typing import Any, Dict, Optional


class CooldownGate:
    """
    Time-based gate between captures.

    Timestamps are seconds from a monotonic clock (time.monotonic in
    production). The gate only moves forward when mark() is called after a
    successful capture.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.cooldown = float(config.get("cooldown_seconds", 1.5))
        if self.cooldown < 0:
            raise ValueError(f"cooldown_seconds must not be negative, got {self.cooldown}")
        self.last_capture: Optional[float] = None

    def permits(self, now: float) -> bool:
        """True if no capture happened yet, or the cooldown has fully elapsed."""
        if self.last_capture is None:
            return True
        return now - self.last_capture >= self.cooldown

    def mark(self, now: float) -> None:
        """Record a successful capture at `now`."""
        self.last_capture = now

    def remaining(self, now: float) -> float:
        """Seconds left before the gate opens (0.0 if open)."""
        if self.last_capture is None:
            return 0.0
        return max(0.0, self.cooldown - (now - self.last_capture))
