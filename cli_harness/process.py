from __future__ import annotations

"""
Run the CLI under test as a child process.

`run_cli` executes one blocking invocation and returns normalized output.
`run_wizard_cli` drives the interactive wizard: it waits for the first prompt,
then types each scripted answer and waits for the child to echo it back before
sending the next one. There is no protocol between harness and child beyond
what shows up on stdout.
"""

import codecs
import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass, field
from typing import IO, Mapping, Sequence

from cli_harness.config import HarnessConfig, load_config
from cli_harness.environment import get_clean_environment
from cli_harness.normalize import clean_std_output, extract_uuids
from cli_harness.wait import ConditionNotMet, wait_for_condition


logger = logging.getLogger(__name__)

ENTER_KEY = "\r"
READ_CHUNK_BYTES = 8192


@dataclass(frozen=True)
class CliResult:
    stdout: str
    stderr: str
    status: int
    matches: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class WizardResult:
    stdout: str
    stderr: str
    status: int


class ProcessHandle:
    """
    A spawned child whose stdout/stderr are accumulated in memory.

    One reader thread per stream appends decoded chunks; buffers only ever
    grow, so pollers can keep re-reading them while the child runs.
    """

    def __init__(
        self,
        cmd: Sequence[str],
        *,
        cwd: str | os.PathLike[str] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.cmd = tuple(cmd)
        logger.debug("spawning %s (cwd=%s)", " ".join(self.cmd), cwd or os.getcwd())
        self.process = subprocess.Popen(
            self.cmd,
            cwd=None if cwd is None else str(cwd),
            env=None if env is None else dict(env),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        self._lock = threading.Lock()
        self._stdout: list[str] = []
        self._stderr: list[str] = []
        self._readers = [
            threading.Thread(target=self._pump, args=(self.process.stdout, self._stdout), daemon=True),
            threading.Thread(target=self._pump, args=(self.process.stderr, self._stderr), daemon=True),
        ]
        for reader in self._readers:
            reader.start()

    def _pump(self, stream: IO[bytes], sink: list[str]) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            try:
                chunk = stream.read1(READ_CHUNK_BYTES)
            except (OSError, ValueError):
                chunk = b""
            text = decoder.decode(chunk, final=not chunk)
            if text:
                with self._lock:
                    sink.append(text)
            if not chunk:
                return

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def stdout_memory(self) -> str:
        with self._lock:
            return "".join(self._stdout)

    @property
    def stderr_memory(self) -> str:
        with self._lock:
            return "".join(self._stderr)

    @property
    def status(self) -> int:
        """Exit status of the child, or -1 while it is still running."""
        code = self.process.poll()
        return -1 if code is None else code

    @property
    def exited(self) -> bool:
        return self.process.poll() is not None

    def write(self, text: str) -> None:
        stdin = self.process.stdin
        if stdin is None:
            raise RuntimeError("child stdin is not available")
        stdin.write(text.encode("utf-8"))
        stdin.flush()

    def close_stdin(self) -> None:
        stdin = self.process.stdin
        if stdin is None or stdin.closed:
            return
        try:
            stdin.close()
        except BrokenPipeError:
            pass

    def kill(self, timeout_sec: float = 5.0) -> None:
        """Terminate the child if it is still running and collect its output streams."""
        if self.process.poll() is None:
            self.process.kill()
        try:
            self.process.wait(timeout=timeout_sec)
        except subprocess.TimeoutExpired:
            logger.warning("pid %s did not exit within %.1fs of kill", self.pid, timeout_sec)
        self.close_stdin()
        for reader in self._readers:
            reader.join(timeout=timeout_sec)
        for stream in (self.process.stdout, self.process.stderr):
            if stream is not None and not stream.closed:
                stream.close()

    def describe_output(self) -> str:
        return f"STDOUT: {self.stdout_memory}\nSTDERR:{self.stderr_memory}"


def run_cli(
    args: Sequence[str],
    *,
    cwd: str | os.PathLike[str] | None = None,
    env: Mapping[str, object] | None = None,
    timeout: float | None = None,
    config: HarnessConfig | None = None,
) -> CliResult:
    """
    Run the CLI to completion and return its normalized output.

    UUIDs are pulled out of stdout before normalization replaces them, so
    callers can still look up the entities the command created.
    """
    config = config or load_config()
    cmd = config.command(*args)
    logger.debug("running %s", " ".join(cmd))
    completed = subprocess.run(
        cmd,
        cwd=None if cwd is None else str(cwd),
        env=get_clean_environment(env),
        capture_output=True,
        timeout=timeout,
        check=False,
    )

    stdout = (completed.stdout or b"").decode("utf-8", errors="replace")
    stderr = (completed.stderr or b"").decode("utf-8", errors="replace")
    # A missing status is reported as success, matching how the CLI tests read it.
    status = completed.returncode or 0

    uuids = extract_uuids(stdout)
    return CliResult(
        stdout=clean_std_output(stdout),
        stderr=clean_std_output(stderr),
        status=status,
        matches={"uuids": uuids},
    )


def write_all_inputs(
    handle: ProcessHandle,
    inputs: Sequence[str],
    *,
    config: HarnessConfig | None = None,
) -> None:
    """Type each input followed by Enter, waiting for the child to echo it before moving on."""
    config = config or load_config()
    for value in inputs:
        handle.write(value + ENTER_KEY)
        wait_for_condition(
            lambda: value in handle.stdout_memory,
            lambda: f'Input "{value}" was never echoed back\n{handle.describe_output()}',
            timeout_sec=config.poll_timeout_sec,
            interval_sec=config.poll_interval_sec,
        )
        # The echo can land before the prompt library is ready for the next line.
        time.sleep(config.input_settle_sec)

    handle.close_stdin()


def run_wizard_cli(
    args: Sequence[str],
    inputs: Sequence[str],
    *,
    cwd: str | os.PathLike[str] | None = None,
    env: Mapping[str, object] | None = None,
    input_wait_condition: str | None = None,
    config: HarnessConfig | None = None,
) -> WizardResult:
    """
    Drive the interactive `wizard` subcommand with scripted answers.

    The child is always killed before returning, whether the run finished,
    timed out waiting for a prompt, or failed while feeding input. Output is
    returned raw; pass it through `clean_std_output` for snapshot comparisons.
    """
    config = config or load_config()
    marker = input_wait_condition or config.wizard_prompt
    handle = ProcessHandle(
        config.command("wizard", *args),
        cwd=cwd,
        env=get_clean_environment(env),
    )

    try:
        wait_for_condition(
            lambda: marker in handle.stdout_memory,
            lambda: f'Output never contained "{marker}"\n{handle.describe_output()}',
            timeout_sec=config.poll_timeout_sec,
            interval_sec=config.poll_interval_sec,
        )
        write_all_inputs(handle, inputs, config=config)
        try:
            wait_for_condition(
                lambda: handle.exited,
                timeout_sec=config.poll_timeout_sec,
                interval_sec=config.poll_interval_sec,
            )
        except ConditionNotMet:
            logger.debug("wizard pid %s still running after input, killing it", handle.pid)
        status = handle.status
    finally:
        handle.kill()

    return WizardResult(stdout=handle.stdout_memory, stderr=handle.stderr_memory, status=status)
