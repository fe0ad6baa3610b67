"""Split the raw serial byte stream into newline-delimited text frames."""

from typing import AsyncIterable, AsyncIterator, List


class LineFramer:
    """Buffer bytes and emit one trimmed text frame per delimiter.

    A framer belongs to a single connection; create a fresh one after every
    reconnect so no partial line leaks across sessions.
    """

    def __init__(self, delimiter: bytes = b"\n", encoding: str = "utf-8"):
        if not delimiter:
            raise ValueError("delimiter must be non-empty")
        self.delimiter = delimiter
        self.encoding = encoding
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet terminated by a delimiter."""
        return len(self._buffer)

    def feed(self, data: bytes) -> List[str]:
        """Add a chunk and return every line it completes, in order."""
        self._buffer.extend(data)
        frames = []
        while True:
            idx = self._buffer.find(self.delimiter)
            if idx < 0:
                break
            raw = bytes(self._buffer[:idx])
            del self._buffer[: idx + len(self.delimiter)]
            frames.append(raw.decode(self.encoding, errors="replace").strip())
        return frames

    async def frames(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
        """Yield frames lazily until the chunk source is exhausted."""
        async for chunk in chunks:
            for frame in self.feed(chunk):
                yield frame
