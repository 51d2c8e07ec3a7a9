"""
Transports that actually invoke the ung tool.

CliRunner spawns the local executable; HttpRunner talks to the remote
API variant. Both map every failure onto the tool error taxonomy so the
command bus can decide what to retry.
"""

import os
import shutil
import socket
import subprocess
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

import orjson

from .. import __version__
from ..config.defaults import HttpParams, ToolParams
from ..errors import (
    NetworkError,
    ParseError,
    PermissionDeniedError,
    ToolNotInstalledError,
    ToolTimeoutError,
    error_from_cli_failure,
    error_from_http_status,
)
from ..logging import get_logger


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Cannot serialize {type(value).__name__}")


class CliRunner:
    """Runs the ung executable and returns its stdout."""

    def __init__(
        self,
        executable: str = "ung",
        search_paths: Sequence[str] = (),
        use_global: bool = False,
        process_timeout: Optional[float] = None,
        env: Optional[dict[str, str]] = None
    ):
        self.executable = executable
        self.search_paths = tuple(search_paths)
        self.use_global = use_global
        self.process_timeout = process_timeout
        self.env = env
        self.logger = get_logger(__name__).bind(runner="cli")
        self._resolved: Optional[str] = None

    @classmethod
    def from_params(cls, params: ToolParams) -> "CliRunner":
        """Create a runner from configuration parameters."""
        return cls(
            executable=params.executable,
            search_paths=params.search_paths,
            use_global=params.use_global,
            process_timeout=params.process_timeout_seconds,
        )

    def resolve_executable(self) -> str:
        """
        Locate the executable.

        Lookup order: an explicit path, PATH, then the well-known install
        locations.

        Raises:
            ToolNotInstalledError: If no candidate is an executable file
        """
        if self._resolved is not None:
            return self._resolved

        candidates = []
        if os.sep in self.executable:
            candidates.append(Path(self.executable).expanduser())
        else:
            found = shutil.which(self.executable)
            if found:
                candidates.append(Path(found))
        candidates.extend(Path(p).expanduser() for p in self.search_paths)

        for candidate in candidates:
            if candidate.is_file() and os.access(candidate, os.X_OK):
                self._resolved = str(candidate)
                self.logger.debug("Resolved executable", path=self._resolved)
                return self._resolved

        raise ToolNotInstalledError(
            f"{self.executable} executable not found",
            executable=self.executable,
            context={"search_paths": list(self.search_paths)},
        )

    def is_installed(self) -> bool:
        """Check whether the executable can be located."""
        try:
            self.resolve_executable()
        except ToolNotInstalledError:
            return False
        return True

    def version(self) -> str:
        """Get the tool's version string."""
        return self.run(["--version"], use_global=False).strip()

    def run(self, args: Sequence[str], use_global: Optional[bool] = None) -> str:
        """
        Invoke the tool and return its stdout.

        Args:
            args: Arguments after the executable
            use_global: Override the runner's --global setting

        Returns:
            Captured stdout of a zero exit

        Raises:
            ToolError: Taxonomy error for any failure
        """
        argv = [self.resolve_executable()]
        if self.use_global if use_global is None else use_global:
            argv.append("--global")
        argv.extend(str(a) for a in args)

        self.logger.debug("Invoking tool", argv=argv[1:])

        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.process_timeout,
                env=self.env,
                check=False,
            )
        except FileNotFoundError as e:
            self._resolved = None
            raise ToolNotInstalledError(str(e), executable=argv[0]) from e
        except PermissionError as e:
            raise PermissionDeniedError(str(e), context={"argv": argv[1:]}) from e
        except subprocess.TimeoutExpired as e:
            raise ToolTimeoutError(
                f"Process timed out after {self.process_timeout}s",
                timeout_seconds=self.process_timeout,
                context={"argv": argv[1:]},
            ) from e

        if completed.returncode != 0:
            diagnostic = completed.stderr.strip() or completed.stdout.strip()
            self.logger.warning(
                "Tool exited with failure",
                argv=argv[1:],
                exit_code=completed.returncode,
                stderr=diagnostic[:200]
            )
            raise error_from_cli_failure(completed.returncode, diagnostic, argv[1:])

        return completed.stdout


class HttpRunner:
    """Calls the remote API and unwraps its {success, data, error} envelope."""

    def __init__(
        self,
        base_url: str,
        api_prefix: str = "/api/v1",
        token: Optional[str] = None,
        timeout_seconds: float = 30.0,
        opener: Callable[..., Any] = urlopen
    ):
        self.base_url = base_url.rstrip("/")
        self.api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""
        self.token = token
        self.timeout_seconds = timeout_seconds
        self._opener = opener
        self.logger = get_logger(__name__).bind(runner="http")

    @classmethod
    def from_params(cls, params: HttpParams) -> "HttpRunner":
        """Create a runner from configuration parameters."""
        return cls(
            base_url=params.base_url,
            api_prefix=params.api_prefix,
            token=params.token,
            timeout_seconds=params.timeout_seconds,
        )

    def url_for(self, path: str, query: Optional[dict[str, Any]] = None) -> str:
        """Build the absolute URL for an API path."""
        url = f"{self.base_url}{self.api_prefix}/{path.lstrip('/')}"
        if query:
            url += "?" + urlencode(sorted((k, str(v)) for k, v in query.items()))
        return url

    def request(
        self,
        method: str,
        path: str,
        body: Optional[dict[str, Any]] = None,
        query: Optional[dict[str, Any]] = None
    ) -> Any:
        """
        Perform one API request.

        Args:
            method: HTTP method
            path: Path below the API prefix, e.g. "/invoices"
            body: JSON body
            query: Query string parameters

        Returns:
            The envelope's data member

        Raises:
            ToolError: Taxonomy error for any failure
        """
        url = self.url_for(path, query)
        data = orjson.dumps(body, default=_json_default) if body is not None else None
        headers = {
            "Accept": "application/json",
            "User-Agent": f"ung-bridge/{__version__}",
        }
        if data is not None:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        req = Request(url, data=data, headers=headers, method=method)
        self.logger.debug("API request", method=method, path=path)

        try:
            with self._opener(req, timeout=self.timeout_seconds) as response:
                status_code = response.getcode()
                raw = response.read()

        except HTTPError as e:
            raw_error = e.read() if e.fp is not None else b""
            message = self._error_message(raw_error) or f"HTTP {e.code}: {e.reason}"
            self.logger.warning("API error response", method=method, path=path, status_code=e.code)
            raise error_from_http_status(e.code, message) from e

        except (socket.timeout, TimeoutError) as e:
            raise ToolTimeoutError(
                f"{method} {path} timed out after {self.timeout_seconds}s",
                timeout_seconds=self.timeout_seconds,
            ) from e

        except (URLError, OSError) as e:
            reason = getattr(e, "reason", None)
            if isinstance(reason, (socket.timeout, TimeoutError)):
                raise ToolTimeoutError(
                    f"{method} {path} timed out after {self.timeout_seconds}s",
                    timeout_seconds=self.timeout_seconds,
                ) from e
            self.logger.warning("API network error", method=method, path=path, error=str(e))
            raise NetworkError(f"{method} {path}: {reason or e}") from e

        envelope = self._decode(raw)
        if envelope is None:
            return None

        if not envelope.get("success", False):
            raise error_from_http_status(status_code, envelope.get("error") or "Request failed")

        return envelope.get("data")

    def _decode(self, raw: bytes) -> Optional[dict[str, Any]]:
        if not raw or not raw.strip():
            return None
        try:
            envelope = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise ParseError("Response body is not valid JSON", raw_excerpt=raw[:120].decode("utf-8", "replace")) from e
        if not isinstance(envelope, dict):
            raise ParseError("Response body is not a JSON object", raw_excerpt=raw[:120].decode("utf-8", "replace"))
        return envelope

    def _error_message(self, raw: bytes) -> Optional[str]:
        try:
            envelope = orjson.loads(raw) if raw else None
        except orjson.JSONDecodeError:
            return None
        if isinstance(envelope, dict) and envelope.get("error"):
            return str(envelope["error"])
        return None
