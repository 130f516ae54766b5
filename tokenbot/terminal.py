"""Line-oriented terminal input with optional masking."""

import sys
from typing import Optional, TextIO

BACKSPACE_CHARS = ("\x7f", "\b")
INTERRUPT_CHAR = "\x03"
EOF_CHAR = "\x04"


class LineReader:
    """
    Read lines from an input stream.

    Masked reads echo ``mask_char`` for every typed character when the input
    is an interactive terminal. Non-terminal inputs (pipes, StringIO) are read
    as plain lines and only the prompt is written.
    """

    def __init__(
        self,
        stream_in: Optional[TextIO] = None,
        stream_out: Optional[TextIO] = None,
        mask_char: str = "*",
    ) -> None:
        self._stream_in = stream_in
        self._stream_out = stream_out
        self.mask_char = mask_char

    @property
    def stream_in(self) -> TextIO:
        return self._stream_in if self._stream_in is not None else sys.stdin

    @property
    def stream_out(self) -> TextIO:
        return self._stream_out if self._stream_out is not None else sys.stdout

    def _is_tty(self) -> bool:
        isatty = getattr(self.stream_in, "isatty", None)
        return bool(isatty and isatty())

    def read_line(self, prompt: str = "", masked: bool = False) -> str:
        """Read one line, stripped of surrounding whitespace."""
        self.stream_out.write(prompt)
        self.stream_out.flush()

        if masked and self._is_tty():
            return self._read_masked().strip()

        line = self.stream_in.readline()
        if not line:
            raise EOFError("No input available")
        if masked:
            self.stream_out.write("\n")
            self.stream_out.flush()
        return line.rstrip("\r\n").strip()

    def confirm(self, prompt: str, default: bool = False) -> bool:
        """
        Prompt for yes/no confirmation.

        Args:
            prompt: The prompt message (should include (y/N) or (Y/n) format)
            default: The default value (True for yes, False for no)

        Returns:
            True if user confirmed (y/yes), False otherwise
        """
        answer = self.read_line(prompt).lower()
        if not answer:
            return default
        return answer in ["y", "yes"]

    def _read_masked(self) -> str:
        # Imported here: termios is POSIX-only
        import termios
        import tty

        fd = self.stream_in.fileno()
        old_settings = termios.tcgetattr(fd)
        chars = []
        try:
            tty.setraw(fd)
            while True:
                char = self.stream_in.read(1)
                if char in ("\r", "\n"):
                    break
                if char == INTERRUPT_CHAR:
                    raise KeyboardInterrupt
                if char == EOF_CHAR or char == "":
                    if not chars:
                        raise EOFError("No input available")
                    break
                if char in BACKSPACE_CHARS:
                    if chars:
                        chars.pop()
                        self.stream_out.write("\b \b")
                        self.stream_out.flush()
                    continue
                chars.append(char)
                self.stream_out.write(self.mask_char)
                self.stream_out.flush()
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
            self.stream_out.write("\n")
            self.stream_out.flush()
        return "".join(chars)
