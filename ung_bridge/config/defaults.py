"""Default configuration parameters for the tool-mediation layer."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ToolParams:
    """How the external CLI is located and invoked."""
    executable: str = "ung"
    search_paths: tuple[str, ...] = (
        "/opt/homebrew/bin/ung",
        "/usr/local/bin/ung",
        "~/go/bin/ung",
        "/usr/bin/ung",
    )
    use_global: bool = False                         # Prefix every call with --global
    process_timeout_seconds: Optional[float] = None  # Hard kill; None leaves it to the bus


@dataclass(frozen=True)
class BusParams:
    """Command bus timeout and retry policy."""
    timeout_seconds: float = 30.0
    max_retries: int = 2


@dataclass(frozen=True)
class CacheParams:
    """Entity cache parameters."""
    ttl_seconds: float = 60.0
    enabled: bool = True


@dataclass(frozen=True)
class MonitorParams:
    """Live session monitor poll cadence."""
    session_poll_seconds: float = 5.0
    today_poll_seconds: float = 60.0


@dataclass(frozen=True)
class HttpParams:
    """Remote HTTP variant of the tool."""
    base_url: str = "http://localhost:8080"
    api_prefix: str = "/api/v1"
    token: Optional[str] = None
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class ViewParams:
    """Presentation tree parameters."""
    recent_sessions_limit: int = 10


@dataclass(frozen=True)
class LoggingParams:
    """Structured logging output."""
    configure: bool = True                           # False leaves logging to the host process
    level: str = "INFO"
    format_json: bool = False
    include_timestamp: bool = True
    include_caller: bool = False


@dataclass(frozen=True)
class BridgeSettings:
    """Complete configuration."""
    backend: str = "cli"                             # cli | http
    tool: ToolParams = field(default_factory=ToolParams)
    bus: BusParams = field(default_factory=BusParams)
    cache: CacheParams = field(default_factory=CacheParams)
    monitor: MonitorParams = field(default_factory=MonitorParams)
    http: HttpParams = field(default_factory=HttpParams)
    views: ViewParams = field(default_factory=ViewParams)
    logging: LoggingParams = field(default_factory=LoggingParams)


def get_default_config() -> BridgeSettings:
    """Get the default configuration instance."""
    return BridgeSettings(
        tool=ToolParams(),
        bus=BusParams(),
        cache=CacheParams(),
        monitor=MonitorParams(),
        http=HttpParams(),
        views=ViewParams(),
        logging=LoggingParams(),
    )
