"""Service status: uptime, network and cache statistics."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from ninjascope.services.cache import TTLCache

VERSION = "1.0.0"


def format_uptime(ms: int) -> str:
    """Render an uptime as "Xd Yh Zm", "Xh Ym Zs", "Xm Ys" or "Xs"."""
    seconds = ms // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m"
    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


@dataclass
class ServiceStatus:
    """Point-in-time health report of the running service."""

    status: str
    version: str
    network: str
    uptime_ms: int
    cache_hits: int
    cache_misses: int
    cache_keys: int
    cache_hit_rate: str
    started_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert status to the nested response shape."""
        return {
            "status": self.status,
            "version": self.version,
            "network": self.network,
            "uptime": {"ms": self.uptime_ms, "human": format_uptime(self.uptime_ms)},
            "cache": {
                "hits": self.cache_hits,
                "misses": self.cache_misses,
                "keys": self.cache_keys,
                "hit_rate": self.cache_hit_rate,
            },
            "started_at": self.started_at.isoformat().replace("+00:00", "Z"),
        }


class StatusService:
    """Reports service health from the cache and process start time."""

    def __init__(self, cache: TTLCache, network: str, start_time: Optional[datetime] = None):
        """
        Initialize the status service.

        Args:
            cache: The cache whose statistics are reported
            network: Name of the selected network
            start_time: Optional start time for uptime calculation (defaults to now)
        """
        self.cache = cache
        self.network = network
        self.start_time = start_time or datetime.now(timezone.utc)

    def status(self) -> ServiceStatus:
        stats = self.cache.stats()
        uptime_ms = int((datetime.now(timezone.utc) - self.start_time).total_seconds() * 1000)
        return ServiceStatus(
            status="healthy",
            version=VERSION,
            network=self.network,
            uptime_ms=max(0, uptime_ms),
            cache_hits=stats.hits,
            cache_misses=stats.misses,
            cache_keys=stats.keys,
            cache_hit_rate=stats.hit_rate,
            started_at=self.start_time,
        )
