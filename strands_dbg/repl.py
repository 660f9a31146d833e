"""Interactive REPL for strands-dbg."""

from __future__ import annotations

import logging
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory, History, InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .commands import CommandRegistry
from .context import DebuggerContext
from .output import attach_notices

LOGGER = logging.getLogger("strands_dbg.repl")


class DebuggerREPL:
    """prompt_toolkit REPL dispatching to the command registry.

    Break, error and halt notices arrive through the context's event bus and
    are printed above the prompt while the process runs in the background.
    """

    def __init__(
        self,
        ctx: DebuggerContext,
        registry: CommandRegistry,
        *,
        history_path: Optional[str] = None,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.history_path = history_path

    def _history(self) -> History:
        if self.history_path:
            return FileHistory(self.history_path)
        return InMemoryHistory()

    def run(self) -> int:
        completer = WordCompleter(self.registry.names(), sentence=True)
        session: PromptSession = PromptSession("(strands) ", history=self._history(), completer=completer)
        notices = attach_notices(self.ctx)
        self.ctx.event_bus.start()
        buffer: List[str] = []
        try:
            with patch_stdout():
                while True:
                    try:
                        line = session.prompt()
                    except (EOFError, KeyboardInterrupt):
                        print()
                        return 0
                    if self._handle_multiline(buffer, line):
                        continue
                    payload = " ".join(buffer) if buffer else line
                    buffer.clear()
                    self.dispatch(payload)
        finally:
            self.ctx.disconnect()
            self.ctx.event_bus.stop()
            notices.close()

    def dispatch(self, line: str) -> int:
        if not line.strip():
            return 0
        try:
            return self.registry.dispatch(self.ctx, line)
        except SystemExit:
            raise
        except Exception as exc:  # pragma: no cover
            LOGGER.exception("command failed")
            print(f"Command failed: {exc}")
            return 1

    def _handle_multiline(self, buffer: List[str], line: str) -> bool:
        stripped = line.rstrip()
        if stripped.endswith("\\"):
            buffer.append(stripped[:-1])
            return True
        if buffer:
            buffer.append(stripped)
        return False
