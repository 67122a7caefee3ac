"""Framed byte channel to a steamcmd process.

Note
----
This is an internal API not covered by versioning policy.
"""

from __future__ import annotations

import logging
import re
import select
import subprocess
import threading
import typing as t
import warnings

from libsteamcmd import exc
from libsteamcmd.config import steamcmd_bin
from libsteamcmd.constants import FRAMING_BYTE_MAP, PROMPT, Mode

if t.TYPE_CHECKING:
    import pathlib
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

#: SGR colour codes, including the remainder left at the start of a frame
#: split on the escape byte
_SGR = re.compile(r"\x1b\[[0-9;]*m|^\[[0-9;]*m")

_PROMPT_BYTES = PROMPT.encode()

READ_CHUNK = 4096


class _SteamCmdProcess(t.Protocol):
    """Subset of :class:`subprocess.Popen` used by the channel."""

    stdin: t.IO[bytes] | None
    stdout: t.IO[bytes] | None
    stderr: t.IO[bytes] | None

    def poll(self) -> int | None: ...

    def wait(self, timeout: float | None = None) -> int: ...

    def terminate(self) -> None: ...

    def kill(self) -> None: ...


class SteamCmdChannel:
    """Line writer and framed reader over one steamcmd process.

    In interactive mode a response is everything printed before the next
    ``Steam>`` prompt, and raw frames are split on the escape byte that starts
    steamcmd's colour codes. In scripted mode frames are plain lines.

    Parameters
    ----------
    mode : :class:`~libsteamcmd.constants.Mode`
        Interactive for the long-lived session, scripted for jobs.
    script : pathlib.Path, optional
        Script run by a scripted process.
    process : optional
        Already running process, used instead of spawning steamcmd.
    prompt_timeout : float, optional
        Seconds without output, while a prompt is outstanding, before an empty
        line is written to provoke one. ``None`` disables provoking.
    max_provocations : int
        Empty writes allowed per response.
    """

    def __init__(
        self,
        mode: Mode = Mode.Interactive,
        script: pathlib.Path | None = None,
        process: _SteamCmdProcess | None = None,
        prompt_timeout: float | None = 5.0,
        max_provocations: int = 3,
    ) -> None:
        self.mode = mode
        self.script = script
        self.prompt_timeout = prompt_timeout
        self.max_provocations = max_provocations
        self._delimiter = FRAMING_BYTE_MAP[mode]
        self._buffer = bytearray()
        self._eof = False
        self._stray_prompts = 0
        self._stderr_thread: threading.Thread | None = None
        self.process: _SteamCmdProcess | None = process or self._start_process()

        if self.mode is Mode.Interactive:
            # Banner output up to the first prompt
            banner = self.read_response()
            logger.debug("steamcmd banner: %r", banner)

    @classmethod
    def interactive(cls, **kwargs: t.Any) -> SteamCmdChannel:
        """Spawn the long-lived interactive session."""
        return cls(Mode.Interactive, **kwargs)

    @classmethod
    def scripted(cls, script: pathlib.Path, **kwargs: t.Any) -> SteamCmdChannel:
        """Spawn a throwaway process running *script*."""
        return cls(Mode.Scripted, script=script, **kwargs)

    def __enter__(self) -> SteamCmdChannel:
        return self

    def __exit__(self, *args: t.Any) -> None:
        self.close()

    def __del__(self) -> None:  # pragma: no cover - best effort cleanup
        if self.__dict__.get("process") is not None:
            warnings.warn(
                f"unclosed {self!r}",
                ResourceWarning,
                stacklevel=2,
            )
            self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(mode={self.mode.name})"

    # Lifecycle ---------------------------------------------------------
    def argv(self) -> list[str]:
        """Command line used to spawn steamcmd for this mode."""
        if self.mode is Mode.Interactive:
            return [
                steamcmd_bin(),
                "+@ShutdownOnFailedCommand 0",
                "+@NoPromptForPassword 1",
            ]
        return [
            steamcmd_bin(),
            "+@ShutdownOnFailedCommand 1",
            "+@NoPromptForPassword 1",
            "+runscript",
            str(self.script),
        ]

    def _start_process(self) -> _SteamCmdProcess:
        argv = self.argv()
        logger.debug("starting steamcmd: %s", argv)
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as e:
            raise exc.ProcessSpawnFailure(argv) from e

        self._stderr_thread = threading.Thread(
            target=self._drain_stderr,
            args=(process,),
            daemon=True,
        )
        self._stderr_thread.start()
        return process

    def _drain_stderr(self, process: _SteamCmdProcess) -> None:
        if process.stderr is None:
            return
        for err_line in process.stderr:
            logger.debug(
                "steamcmd stderr: %s",
                err_line.decode("utf-8", errors="replace").rstrip("\n"),
            )

    def close(self) -> None:
        """Ask steamcmd to quit, then terminate it. Safe to call twice."""
        proc = self.process
        if proc is None:
            return

        self.process = None
        try:
            if proc.poll() is None and proc.stdin is not None:
                try:
                    proc.stdin.write(b"quit\n")
                    proc.stdin.flush()
                    proc.stdin.close()
                except OSError:
                    # Stopping anyway
                    pass
            proc.wait(timeout=1)
        except subprocess.TimeoutExpired:
            proc.terminate()
            try:
                proc.wait(timeout=1)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()

    def wait(self) -> int:
        """Wait for a scripted process to exit and return its exit code."""
        proc = self.process
        if proc is None:
            msg = "steamcmd process already closed"
            raise exc.ChannelClosed(msg)
        returncode = proc.wait()
        self.process = None
        return returncode

    # I/O ---------------------------------------------------------------
    def write(self, line: str) -> None:
        """Write *line*, with embedded line endings removed, plus a newline."""
        proc = self.process
        if proc is None or proc.stdin is None:
            msg = "steamcmd stdin closed"
            raise exc.ChannelClosed(msg)

        line = line.replace("\r", "").replace("\n", "")
        logger.debug("steamcmd <- %r", line)
        try:
            proc.stdin.write(f"{line}\n".encode())
            proc.stdin.flush()
        except BrokenPipeError as e:
            msg = "steamcmd process unavailable"
            raise exc.ChannelClosed(msg) from e
        except OSError as e:
            msg = f"Cannot write to steamcmd: {e}"
            raise exc.IoFailure(msg) from e

    def _readable(self, timeout: float) -> bool:
        """Whether more output can be read without blocking."""
        if self._eof:
            return True
        stdout = self.process.stdout if self.process else None
        if stdout is None:
            return True
        try:
            fileno = stdout.fileno()
        except (AttributeError, OSError, ValueError):
            # In-memory streams never block
            return True
        return bool(select.select([fileno], [], [], timeout)[0])

    def _fill(self) -> None:
        """Read one chunk of output into the buffer, or mark EOF."""
        stdout = self.process.stdout if self.process else None
        if stdout is None:
            self._eof = True
            return
        try:
            chunk = stdout.read(READ_CHUNK)
        except OSError as e:
            msg = f"Cannot read from steamcmd: {e}"
            raise exc.IoFailure(msg) from e
        if chunk:
            self._buffer.extend(chunk)
        else:
            self._eof = True

    def _decode(self, raw: bytes) -> str:
        return _SGR.sub("", raw.decode("utf-8", errors="replace"))

    def read_frame(self) -> bytes | None:
        """Return the next frame without its delimiter, ``None`` at EOF."""
        while True:
            index = self._buffer.find(self._delimiter)
            if index != -1:
                frame = bytes(self._buffer[:index])
                del self._buffer[: index + 1]
                return frame

            if self._eof:
                if not self._buffer:
                    return None
                frame = bytes(self._buffer)
                self._buffer.clear()
                return frame
            self._fill()

    def read_text(self) -> str | None:
        """Return the next frame decoded, ``None`` at EOF."""
        frame = self.read_frame()
        if frame is None:
            return None
        return self._decode(frame)

    def read_response(self) -> str:
        """Return everything steamcmd prints up to its next prompt.

        Colour codes are removed. When the prompt is late, empty lines are
        written to provoke one; the extra prompts they cause are skipped by
        later reads.

        Raises
        ------
        :exc:`exc.ChannelClosed`
            EOF before any output.
        """
        provocations = 0

        while True:
            index = self._buffer.find(_PROMPT_BYTES)
            if index != -1:
                response = self._decode(bytes(self._buffer[:index]))
                del self._buffer[: index + len(_PROMPT_BYTES)]
                if self._stray_prompts and not response.strip():
                    # Prompt caused by an earlier empty write
                    self._stray_prompts -= 1
                    continue
                logger.debug("steamcmd -> %r", response)
                return response

            if self._eof:
                if self._buffer:
                    response = self._decode(bytes(self._buffer))
                    self._buffer.clear()
                    return response
                msg = "steamcmd closed its output"
                raise exc.ChannelClosed(msg)

            if (
                self.prompt_timeout is not None
                and provocations < self.max_provocations
                and not self._readable(self.prompt_timeout)
            ):
                logger.debug("no prompt from steamcmd yet, provoking one")
                self.write("")
                provocations += 1
                self._stray_prompts += 1
                continue

            self._fill()

    def __iter__(self) -> Iterator[str]:
        """Yield decoded frames until EOF."""
        while True:
            text = self.read_text()
            if text is None:
                return
            yield text
