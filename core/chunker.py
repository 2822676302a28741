"""Regex-based declaration chunking for JS/TS source. Not a parser."""

from config.rules import CHUNK_PATTERNS
from core.state import CodeChunk


def _match_boundary(line):
    for chunk_type, pattern in CHUNK_PATTERNS:
        match = pattern.match(line)
        if match:
            name = next((g for g in match.groups() if g), "")
            return chunk_type, name
    return None


class FileChunker:
    """Splits a file into contiguous declaration chunks.

    Every line that starts a declaration closes the previous chunk on the
    line before it. The last chunk runs to the end of the file. Lines before
    the first declaration belong to no chunk; a file without declarations
    yields no chunks.
    """

    def chunk(self, content):
        lines = content.split("\n")
        chunks = []
        current = None   # (start, type, name)

        for index, raw in enumerate(lines):
            boundary = _match_boundary(raw.strip())
            if boundary is None:
                continue
            if current is not None:
                chunks.append(self._close(lines, current, index - 1))
            current = (index, boundary[0], boundary[1])

        if current is not None:
            chunks.append(self._close(lines, current, len(lines) - 1))
        return chunks

    @staticmethod
    def _close(lines, current, end):
        start, chunk_type, name = current
        return CodeChunk(
            start_line=start,
            end_line=end,
            type=chunk_type,
            name=name,
            content="\n".join(lines[start:end + 1]),
        )
