import codecs
import re
from typing import Union

from .domain import PROMPT

_LINE_BREAK = re.compile(r"[\r\n]")
_PROMPT_PREFIX = PROMPT + " "


class LineFramer:
    """
    Splits raw output chunks from wpa_cli into trimmed, non-empty lines.

    A trailing partial line is held until its terminator arrives. The idle
    prompt is dropped, both as a line of its own and when wpa_cli printed it
    directly in front of the next line of output.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, chunk: Union[bytes, str]) -> list[str]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk
        *complete, self._buffer = _LINE_BREAK.split(self._buffer)
        return self._frame(complete)

    def flush(self) -> list[str]:
        """Emit whatever is left once the stream has ended."""
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._frame([remainder])

    @staticmethod
    def _frame(segments: list[str]) -> list[str]:
        lines = []
        for segment in segments:
            line = segment.strip()
            while line.startswith(_PROMPT_PREFIX):
                line = line[len(_PROMPT_PREFIX):].lstrip()
            if line and line != PROMPT:
                lines.append(line)
        return lines
