import asyncio
import sys
import threading
from typing import Optional, TextIO

try:
    import readline
except ImportError:
    readline = None

CLEAR_LINE = "\r\x1b[K"


def _resolve(future: asyncio.Future, line: Optional[str], exc: Optional[BaseException]) -> None:
    if future.done():
        return
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(line)


class Console:
    """Line reader that lets reminders print without eating pending input.

    ``ask`` blocks on ``input`` in a daemon thread and hands the line back to
    the event loop, so reminder ticks keep firing on the loop while the user
    types. ``notify`` writes a message above the prompt and then redraws the
    prompt and whatever has been typed so far.
    """

    def __init__(self, stdout: Optional[TextIO] = None):
        self.stdout = stdout or sys.stdout
        self.pending_prompt = ""

    async def ask(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def read() -> None:
            line, error = None, None
            try:
                line = input(prompt)
            except Exception as exc:
                error = exc
            try:
                loop.call_soon_threadsafe(_resolve, future, line, error)
            except RuntimeError:
                # loop already closed, nobody is waiting for this line
                pass

        self.pending_prompt = prompt
        threading.Thread(target=read, name="console-input", daemon=True).start()
        try:
            answer = await future
        finally:
            self.pending_prompt = ""
        return answer.strip()

    def typed_text(self) -> str:
        if readline is None:
            return ""
        return readline.get_line_buffer()

    def write(self, text: str = "") -> None:
        self.stdout.write(text + "\n")
        self.stdout.flush()

    def notify(self, message: str) -> None:
        out = self.stdout
        if self.pending_prompt:
            out.write(CLEAR_LINE)
        out.write("\n" + message + "\n\n")
        if self.pending_prompt:
            out.write(self.pending_prompt + self.typed_text())
        out.flush()
