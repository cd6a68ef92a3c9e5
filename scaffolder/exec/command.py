"""
Command step execution.

Plain commands inherit the terminal. Interactive commands (haveInteraction)
have their stdout watched for scripted questions while the operator can
still type answers directly.

Operator input from a terminal or pipe is relayed from the raw file
descriptor. Text that earlier prompts already pulled into ``sys.stdin``'s
buffer is not visible there, so answers piped in ahead of time
(``printf 'demo\\ny\\n' | scaffold ...``) can be lost to an interactive
command. Redirecting a regular file (``scaffold ... < answers.txt``) reads
through the stream's own buffer and keeps them.
"""

import logging
import os
import queue
import selectors
import subprocess
import sys
import threading
from typing import Any, BinaryIO, Dict, List, Optional, TextIO

from ..exceptions import CommandExecutionError
from ..variables import TemplateResolver, stringify

logger = logging.getLogger(__name__)

OUTPUT = 'output'
INPUT = 'input'

READ_CHUNK = 4096
INPUT_POLL_SEC = 0.1


def _read_output(pipe: BinaryIO, events: queue.Queue) -> None:
    """Forward child stdout chunks; an empty chunk marks end of output."""
    for chunk in iter(lambda: pipe.read(READ_CHUNK), b''):
        events.put((OUTPUT, chunk))
    events.put((OUTPUT, b''))


def _relay_selectable(fd: int, selector: selectors.BaseSelector,
                      events: queue.Queue, stop: threading.Event) -> None:
    """Forward operator input until stopped; polls so it can be torn down."""
    try:
        while not stop.is_set():
            if not selector.select(timeout=INPUT_POLL_SEC):
                continue
            data = os.read(fd, 1024)
            if not data:
                break
            events.put((INPUT, data))
    finally:
        selector.close()


def _relay_blocking(source: Any, events: queue.Queue, stop: threading.Event) -> None:
    """Line relay for inputs that cannot be polled; drops lines once stopped."""
    while not stop.is_set():
        line = source.readline()
        if not line or stop.is_set():
            break
        events.put((INPUT, line.encode() if isinstance(line, str) else line))


class CommandExecutor:
    """
    Runs ``command`` steps through the platform shell.

    Exit code 0 completes the step; anything else, or a failure to start the
    process, raises CommandExecutionError.
    """

    def __init__(self, resolver: TemplateResolver,
                 operator_input: Optional[Any] = None,
                 echo: Optional[TextIO] = None):
        """
        Initialize command executor.

        Args:
            resolver: Template resolver for cmd/cwd
            operator_input: Stream relayed to interactive commands (default: sys.stdin)
            echo: Stream interactive output is echoed to (default: sys.stdout)
        """
        self.resolver = resolver
        self.operator_input = operator_input
        self.echo = echo

    def execute(self, step: Dict[str, Any]) -> None:
        """Execute a command step."""
        cmd = self.resolver.resolve(str(step['cmd']))
        current_dir = os.getcwd()
        cwd = self.resolver.resolve(str(step['cwd'])) if step.get('cwd') else current_dir

        print(f"    Running: {cmd}")
        if cwd != current_dir:
            print(f"    Working directory: {cwd}")
        sys.stdout.flush()

        if step.get('haveInteraction'):
            returncode = self._run_interactive(cmd, cwd, step.get('interactions') or [])
        else:
            returncode = self._run_inherited(cmd, cwd)

        if returncode != 0:
            raise CommandExecutionError(f"Command exited with code {returncode}", returncode)

    def _run_inherited(self, cmd: str, cwd: str) -> int:
        try:
            result = subprocess.run(cmd, shell=True, cwd=cwd)
        except OSError as e:
            raise CommandExecutionError(f"Failed to start command '{cmd}': {e}") from e
        return result.returncode

    def _run_interactive(self, cmd: str, cwd: str, interactions: List[Dict[str, Any]]) -> int:
        try:
            process = subprocess.Popen(
                cmd,
                shell=True,
                cwd=cwd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as e:
            raise CommandExecutionError(f"Failed to start command '{cmd}': {e}") from e

        events: queue.Queue = queue.Queue()
        stop = threading.Event()

        output_reader = threading.Thread(
            target=_read_output, args=(process.stdout, events), daemon=True
        )
        output_reader.start()
        input_relay = self._start_input_relay(events, stop)

        # Only this loop writes to the child's stdin.
        try:
            while True:
                kind, data = events.get()
                if kind == OUTPUT:
                    if not data:
                        break
                    self._echo(data)
                    self._auto_answer(process, data, interactions)
                else:
                    self._send(process, data)
        finally:
            stop.set()
            if input_relay is not None:
                input_relay.join(timeout=INPUT_POLL_SEC * 5)
            if process.stdin:
                try:
                    process.stdin.close()
                except BrokenPipeError:
                    logger.debug("Command stdin already closed")

        output_reader.join()
        return process.wait()

    def _start_input_relay(self, events: queue.Queue,
                           stop: threading.Event) -> Optional[threading.Thread]:
        """
        Start relaying operator input to the owner loop.

        Pollable descriptors (terminals, pipes) are read raw with os.read and
        bypass the stream's buffer. Regular files cannot be polled and are
        read line by line through the stream, buffered text included.
        """
        source =self.operator_input if self.operator_input is not None else sys.stdin
        try:
            fd = source.fileno()
        except (AttributeError, OSError, ValueError):
            logger.debug("Operator input has no file descriptor; manual answers disabled")
            return None

        selector = selectors.DefaultSelector()
        try:
            selector.register(fd, selectors.EVENT_READ)
        except (OSError, ValueError):
            # Regular files and Windows consoles cannot be polled
            selector.close()
            relay = threading.Thread(target=_relay_blocking, args=(source, events, stop), daemon=True)
        else:
            relay = threading.Thread(
                target=_relay_selectable, args=(fd, selector, events, stop), daemon=True
            )
        relay.start()
        return relay

    def _auto_answer(self, process: subprocess.Popen, data: bytes,
                     interactions: List[Dict[str, Any]]) -> None:
        output = data.decode('utf-8', errors='replace')
        for interaction in interactions:
            question = interaction.get('question')
            if question and str(question) in output:
                logger.debug(f"Auto-answering '{question}'")
                self._send(process, f"{stringify(interaction.get('answer', ''))}\n".encode())
                return

    def _send(self, process: subprocess.Popen, data: bytes) -> None:
        try:
            process.stdin.write(data)
            process.stdin.flush()
        except (BrokenPipeError, ValueError):
            # Child already closed its stdin; its exit code decides the step
            logger.debug("Command stdin closed, input dropped")

    def _echo(self, data: bytes) -> None:
        stream = self.echo or sys.stdout
        buffer = getattr(stream, 'buffer', None)
        if buffer is not None:
            stream.flush()
            buffer.write(data)
            buffer.flush()
        else:
            stream.write(data.decode('utf-8', errors='replace'))
            stream.flush()
