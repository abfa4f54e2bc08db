# src/browser_harness/core/server.py
"""
Static File Server for the Page Under Test

Serves a directory over HTTP on a random local port by running the
runtime's built-in "http.server" module in a child process, and decides
readiness by probing the page with HEAD requests.

The server is owned by exactly one lifecycle: a failed start leaves no
process behind, and stopping is idempotent and never raises.
"""

import random
import subprocess
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Sequence
from urllib.parse import quote

import requests

from browser_harness.config.settings import Settings, get_settings
from .exceptions import (
    CleanupError,
    ReadinessProbeError,
    ServerNotRespondingError,
    ServerStartError,
)
from .logger import get_logger, get_performance_timer
from .platform import PlatformInfo, current_platform
from .retry import call_with_retry, create_probe_retry_config


class ServerState(str, Enum):
    """Server handle states."""

    STARTING = "starting"
    READY = "ready"
    STOPPED = "stopped"


@dataclass
class ServerHandle:
    """A running (or stopped) file server process."""

    process: subprocess.Popen
    port: int
    root_directory: Path
    file_name: str
    runtime: str = ""
    state: ServerState = ServerState.STARTING

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}/{quote(self.file_name)}"

    @property
    def is_ready(self) -> bool:
        return self.state == ServerState.READY


def default_runtime_candidates(platform: PlatformInfo) -> List[str]:
    """Script runtimes tried when none are configured."""
    candidates = ["python3"]
    if platform.is_windows:
        candidates.append("python")
    return candidates


def detect_runtime(candidates: Sequence[str], timeout: float) -> str:
    """
    Find the first runtime that answers "--version" with exit code 0.

    Raises:
        ServerStartError: If no candidate works
    """
    logger = get_logger("server")

    for candidate in candidates:
        try:
            result = subprocess.run(
                [candidate, "--version"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=timeout,
                check=False
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Runtime candidate unavailable", runtime=candidate, error=str(e))
            continue

        if result.returncode == 0:
            logger.debug("Runtime detected", runtime=candidate)
            return candidate

        logger.debug("Runtime candidate failed", runtime=candidate, exit_code=result.returncode)

    raise ServerStartError(
        "no script runtime available to serve files",
        context={"candidates": list(candidates)}
    )


def probe_once(url: str, connect_timeout: float, read_timeout: float) -> requests.Response:
    """
    Issue a single HEAD request against the server.

    Raises:
        ReadinessProbeError: On connection failure or a non-200 status
    """
    try:
        response = requests.head(url, timeout=(connect_timeout, read_timeout), allow_redirects=False)
    except requests.RequestException as e:
        raise ReadinessProbeError(f"Probe failed: {e}", url=url, original_exception=e)

    if response.status_code != 200:
        raise ReadinessProbeError(
            f"Probe returned HTTP {response.status_code}",
            url=url,
            status_code=response.status_code
        )
    return response


class StaticFileServer:
    """
    Starts and stops local static file servers.

    Example:
        >>> server = StaticFileServer(settings)
        >>> with server.serving(page.parent, page.name) as handle:
        ...     session.navigate(handle.url)
    """

    def __init__(self, settings: Optional[Settings] = None, platform: Optional[PlatformInfo] = None):
        self.settings = settings or get_settings()
        self.platform = platform or current_platform()
        self.logger = get_logger("server")

    @property
    def runtime_candidates(self) -> List[str]:
        configured = self.settings.server.runtime_candidates
        return list(configured) if configured else default_runtime_candidates(self.platform)

    def choose_port(self) -> int:
        """Uniform random port in the configured inclusive range."""
        cfg = self.settings.server
        return random.randint(cfg.port_min, cfg.port_max)

    def start(self, directory: Path, file_name: str) -> ServerHandle:
        """
        Serve directory over HTTP and wait until file_name answers.

        Args:
            directory: Folder to serve (becomes the process working directory)
            file_name: File probed for readiness, relative to directory

        Returns:
            ServerHandle: Handle in the ready state

        Raises:
            ServerStartError: No runtime, spawn failure or early process exit
            ServerNotRespondingError: Readiness probes exhausted
        """
        cfg = self.settings.server
        directory = Path(directory)

        with get_performance_timer("start_server") as timer:
            runtime = detect_runtime(self.runtime_candidates, cfg.runtime_probe_timeout)
            port = self.choose_port()
            timer.add_metric("port", port)

            command = [runtime, "-m", "http.server", str(port)]
            self.logger.info(
                "Starting HTTP server",
                port=port,
                directory=str(directory),
                runtime=runtime
            )

            try:
                process = subprocess.Popen(
                    command,
                    cwd=str(directory),
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL
                )
            except OSError as e:
                raise ServerStartError(
                    f"could not spawn {runtime}",
                    runtime=runtime,
                    port=port,
                    directory=str(directory),
                    original_exception=e
                )

            handle = ServerHandle(
                process=process,
                port=port,
                root_directory=directory,
                file_name=file_name,
                runtime=runtime
            )

            try:
                time.sleep(cfg.startup_grace)
                exit_code = process.poll()
                if exit_code is not None:
                    raise ServerStartError(
                        f"process exited with code {exit_code}",
                        runtime=runtime,
                        port=port,
                        directory=str(directory)
                    )
                self._await_ready(handle)
            except BaseException:
                self.stop(handle)
                raise

        self.logger.info("HTTP server ready", url=handle.url, port=port)
        return handle

    def _await_ready(self, handle: ServerHandle) -> None:
        cfg = self.settings.server
        url = handle.url
        retry_config = create_probe_retry_config(cfg.probe_attempts, cfg.probe_interval)

        try:
            call_with_retry(
                probe_once,
                retry_config,
                "readiness_probe",
                url,
                cfg.probe_connect_timeout,
                cfg.probe_read_timeout
            )
        except ReadinessProbeError as e:
            raise ServerNotRespondingError(
                f"no HTTP 200 from {url}",
                url=url,
                attempts=cfg.probe_attempts,
                port=handle.port,
                original_exception=e
            )

        handle.state = ServerState.READY

    def stop(self, handle: Optional[ServerHandle]) -> None:
        """
        Terminate the server process; kill it if it outlives the grace period.

        A missing or already stopped handle is a no-op. Failures are logged
        as CleanupError and never raised.
        """
        if handle is None or handle.state == ServerState.STOPPED:
            return

        grace = self.settings.server.stop_grace
        process = handle.process
        try:
            if process.poll() is None:
                process.terminate()
                try:
                    process.wait(timeout=grace)
                except subprocess.TimeoutExpired:
                    self.logger.warning("HTTP server ignored terminate, killing", port=handle.port)
                    process.kill()
                    process.wait(timeout=grace)
            self.logger.info("HTTP server stopped", port=handle.port)
        except Exception as e:
            error = CleanupError(
                "Failed to stop HTTP server",
                resource="http_server",
                context={"port": handle.port},
                original_exception=e
            )
            self.logger.warning(
                str(error),
                error_code=error.error_code,
                resource=error.resource,
                port=handle.port
            )
        finally:
            handle.state = ServerState.STOPPED

    @contextmanager
    def serving(self, directory: Path, file_name: str) -> Iterator[ServerHandle]:
        """Context manager: start a server and always stop it."""
        handle = self.start(directory, file_name)
        try:
            yield handle
        finally:
            self.stop(handle)
