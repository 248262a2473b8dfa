"""Bridge that drives a headless browser through a user-provided command."""
from __future__ import annotations

import json
import logging
import os
import queue
import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from blanket_qunit.core import events
from blanket_qunit.core.events import BridgeEvent
from blanket_qunit.core.models import TaskOptions

from .base import BridgeError, BrowserBridge

logger = logging.getLogger(__name__)

DEFAULT_KILL_GRACE_SECONDS = 3.0
READER_JOIN_SECONDS = 1.0
READER_THREAD_NAME = "blanket-qunit-reader"
COMMAND_TOKENS = ("url", "inject", "timeout")

_EOF = object()


class ProcessBridge(BrowserBridge):
    """Runs one browser process per URL and reads JSON messages from its stdout.

    Every stdout line holding a JSON array whose first item is a string is an
    event; any other line is surfaced as a ``console`` event. stderr is merged
    into stdout.
    """

    name = "process"

    def __init__(self, *, workdir: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> None:
        self._workdir = workdir
        self._env = dict(env or {})
        self._process: Optional[subprocess.Popen] = None
        self._halted = False

    def spawn(self, url: str, options: TaskOptions) -> Iterator[BridgeEvent]:
        argv = render_command(options.command, _build_tokens(url, options))
        env = os.environ.copy()
        env.update(self._env)
        logger.debug("spawning %s", argv)
        try:
            process = subprocess.Popen(
                argv,
                cwd=str(self._workdir) if self._workdir else None,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as exc:
            raise BridgeError(f"Unable to start browser command '{' '.join(argv)}': {exc}") from exc
        self._process = process
        self._halted = False
        return self._read_events(process, options.timeout)

    def halt(self) -> None:
        self._halted = True
        if self._process is not None:
            _terminate(self._process)

    def _read_events(self, process: subprocess.Popen, timeout_ms: Optional[int]) -> Iterator[BridgeEvent]:
        lines: "queue.Queue[object]" = queue.Queue()
        reader = threading.Thread(target=_pump_lines, args=(process, lines), name=READER_THREAD_NAME, daemon=True)
        reader.start()
        wait = timeout_ms / 1000 if timeout_ms else None
        recent: deque = deque(maxlen=5)
        try:
            while not self._halted:
                try:
                    line = lines.get(timeout=wait)
                except queue.Empty:
                    logger.debug("no bridge output for %sms", timeout_ms)
                    yield BridgeEvent(events.FAIL_TIMEOUT)
                    return
                if line is _EOF:
                    _check_exit(process, recent)
                    return
                event = parse_line(str(line))
                if event is None:
                    continue
                if event.name == events.CONSOLE:
                    recent.append(str(event.arg(0)))
                yield event
        finally:
            _terminate(process)
            reader.join(timeout=READER_JOIN_SECONDS)
            if process.stdout is not None and not reader.is_alive():
                process.stdout.close()
            self._process = None


def parse_line(line: str) -> Optional[BridgeEvent]:
    text = line.rstrip("\r\n")
    if not text:
        return None
    if text.startswith("["):
        try:
            message = json.loads(text)
        except ValueError:
            message = None
        if isinstance(message, list) and message and isinstance(message[0], str):
            return BridgeEvent.from_message(message)
    return BridgeEvent(events.CONSOLE, (text,))


def render_command(argv: Sequence[str], tokens: Mapping[str, str]) -> List[str]:
    rendered: List[str] = []
    for part in argv:
        value = _render_template(str(part), tokens)
        if value:
            rendered.append(value)
    if not rendered:
        raise ValueError("Browser command is empty")
    return rendered


def check_command(argv: Sequence[str]) -> None:
    """Reject command templates whose placeholders no bridge run can fill."""

    render_command(argv, dict.fromkeys(COMMAND_TOKENS, "-"))


def _render_template(value: str, tokens: Mapping[str, str]) -> str:
    if "{" not in value or "}" not in value:
        return value
    try:
        return value.format(**tokens)
    except KeyError as exc:
        available = ", ".join(sorted(tokens.keys()))
        raise ValueError(f"Unknown token {exc} in command part '{value}'. Available tokens: {available}") from exc


def _build_tokens(url: str, options: TaskOptions) -> Dict[str, str]:
    return {
        "url": url,
        "inject": options.inject or "",
        "timeout": str(options.timeout),
    }


def _pump_lines(process: subprocess.Popen, lines: "queue.Queue[object]") -> None:
    stream = process.stdout
    if stream is not None:
        for line in stream:
            lines.put(line)
    lines.put(_EOF)


def _terminate(process: subprocess.Popen) -> None:
    if process.poll() is not None:
        return
    logger.debug("terminating browser process %d", process.pid)
    process.terminate()
    try:
        process.wait(timeout=DEFAULT_KILL_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


def _check_exit(process: subprocess.Popen, recent: deque) -> None:
    try:
        code = process.wait(timeout=DEFAULT_KILL_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        # stdout closed but the process lingers; it is terminated by the caller
        return
    if code != 0:
        detail = " | ".join(recent) or "no output"
        raise BridgeError(f"Browser command exited with code {code}: {detail}")
