from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Sequence

from cli_harness.config import HarnessConfig, load_config
from cli_harness.environment import get_clean_environment
from cli_harness.fallback_server import FallbackServer
from cli_harness.fixtures import get_sql_file_path, safe_delete_file
from cli_harness.process import ProcessHandle
from cli_harness.wait import wait_for_condition


LISTENING_MARKER = "listening"
# Any digit count. The 4-6 digit limit belongs to output scrubbing, not port parsing.
ANNOUNCED_PORT_RE = re.compile(r"port (\d+)")


class ProcessOutputError(RuntimeError):
    """Raised when a child's output does not contain what the harness needs from it."""

    def __init__(self, message: str, handle: ProcessHandle) -> None:
        super().__init__(f"{message}\n{handle.describe_output()}")
        self.handle = handle


@dataclass
class ServerProcess:
    """A running `server` subcommand. The caller shuts it down and removes `sql_file`."""

    port: int
    process: ProcessHandle
    sql_file: str

    def close(self) -> None:
        self.process.kill()
        safe_delete_file(self.sql_file)


def start_server(
    sql_file: str | None = None,
    extra_args: Sequence[str] = (),
    *,
    config: HarnessConfig | None = None,
) -> ServerProcess:
    config = config or load_config()
    if not sql_file:
        sql_file = get_sql_file_path()

    handle = ProcessHandle(
        config.command(
            "server",
            "-p=0",
            f"--storage.sqlDatabasePath={sql_file}",
            *extra_args,
        ),
        env=get_clean_environment(),
    )
    try:
        wait_for_condition(
            lambda: LISTENING_MARKER in handle.stdout_memory,
            lambda: f'Server output never contained "{LISTENING_MARKER}"\n{handle.describe_output()}',
            timeout_sec=config.poll_timeout_sec,
            interval_sec=config.poll_interval_sec,
        )
        match = ANNOUNCED_PORT_RE.search(handle.stdout_memory)
        if match is None:
            raise ProcessOutputError("Server is listening but never announced its port", handle)
    except BaseException:
        handle.kill()
        raise

    return ServerProcess(port=int(match.group(1)), process=handle, sql_file=sql_file)


def start_fallback_server(static_dist_dir: str | os.PathLike[str], *, is_single_page_application: bool) -> FallbackServer:
    path_to_build_dir = os.path.join(os.getcwd(), static_dist_dir)
    server = FallbackServer(path_to_build_dir, is_single_page_application)
    server.listen()
    return server
