"""Console output: progress on stdout, failures on stderr, optional colour."""

import sys
from typing import Optional, TextIO

GREEN = "\033[32m"
RED = "\033[31m"
GREY = "\033[90m"
RESET = "\033[0m"


def paint(text: str, color: str, enabled: bool = True) -> str:
    if not enabled or not text:
        return text
    return f"{color}{text}{RESET}"


class Console:
    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None,
                 color: Optional[bool] = None):
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        if color is None:
            color = hasattr(self.err, "isatty") and self.err.isatty()
        self.color = color

    def log(self, msg: str = "") -> None:
        print(msg, file=self.out, flush=True)

    def ok(self, msg: str) -> None:
        self.log(paint(f"✔ {msg}", GREEN, self.color))

    def fail(self, msg: str) -> None:
        print(paint(f"❌ {msg}", RED, self.color), file=self.err, flush=True)

    def write_err(self, text: str) -> None:
        self.err.write(text)
        self.err.flush()
