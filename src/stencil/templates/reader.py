"""Paged character source with unbounded look-back.

The renderer reads templates one character at a time and rewinds to the
start of a section body once per sequence element. Upstream readers are
arbitrary text streams (files, HTTP responses, in-memory buffers), so
instead of seeking, every character ever read is kept in a page table and
positions are remembered on a LIFO mark stack.
"""

from typing import Protocol

EOF = ""

DEFAULT_PAGE_SIZE = 1024


class CharacterSource(Protocol):
    """Minimal interface the renderer needs from a template reader."""

    def read(self) -> str: ...

    def mark(self, read_ahead_limit: int = 0) -> None: ...

    def reset(self) -> None: ...

    def close(self) -> None: ...


class TextStream(Protocol):
    """Upstream text stream (anything with ``read(size)`` and ``close()``)."""

    def read(self, size: int = -1, /) -> str: ...

    def close(self) -> None: ...


class PagedReader:
    """Single-character reader that retains everything it has read.

    Characters are stored in fixed-size pages appended on demand; the page
    table is never compacted, so any earlier position can be revisited.

    Usage:
        with PagedReader(open(path, encoding="utf-8")) as reader:
            reader.mark()
            first = reader.read()
            reader.reset()
            assert reader.read() == first
    """

    def __init__(self, reader: TextStream, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        """Initialize the paged reader.

        Args:
            reader: Upstream text stream
            page_size: Number of characters per page
        """
        if reader is None:
            raise ValueError("reader is required")
        if page_size < 1:
            raise ValueError(f"Invalid page size: {page_size}")

        self._reader = reader
        self._page_size = page_size

        self._position = 0
        self._count = 0
        self._end_of_input = False
        self._closed = False

        self._pages: list[list[str]] = []
        self._marks: list[int] = []

    @property
    def position(self) -> int:
        """Index of the next character to be returned by read()."""
        return self._position

    @property
    def count(self) -> int:
        """Number of characters pulled from the upstream so far."""
        return self._count

    @property
    def mark_depth(self) -> int:
        """Number of positions currently on the mark stack."""
        return len(self._marks)

    def read(self) -> str:
        """Read one character.

        Returns:
            The next character, or EOF ("") once the upstream is exhausted
        """
        if self._position < self._count:
            c = self._pages[self._position // self._page_size][self._position % self._page_size]
            self._position += 1
            return c

        if self._end_of_input:
            return EOF

        c = self._reader.read(1)
        if not c:
            # Later resets are served from the page table.
            self._end_of_input = True
            self.close()
            return EOF

        if self._position // self._page_size == len(self._pages):
            self._pages.append([EOF] * self._page_size)

        self._pages[-1][self._position % self._page_size] = c
        self._position += 1
        self._count += 1

        return c

    def ready(self) -> bool:
        """Return True if a read can return a character without blocking on EOF."""
        if self._position < self._count:
            return True
        if self._end_of_input:
            return False
        readable = getattr(self._reader, "readable", None)
        return bool(readable()) if callable(readable) else True

    def mark(self, read_ahead_limit: int = 0) -> None:
        """Push the current position onto the mark stack.

        Args:
            read_ahead_limit: Accepted for reader compatibility; ignored
        """
        self._marks.append(self._position)

    def reset(self) -> None:
        """Return to the most recent mark, or to the beginning if unmarked."""
        if self._marks:
            self._position = self._marks.pop()
        else:
            self._position = 0

    def close(self) -> None:
        """Close the upstream reader. Safe to call more than once."""
        if not self._closed:
            self._closed = True
            self._reader.close()

    @property
    def closed(self) -> bool:
        """True once the upstream reader has been closed."""
        return self._closed

    def __enter__(self) -> "PagedReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class EmptyReader:
    """Reader that is always at end of input.

    Stands in for includes inside a section that is being skipped.
    """

    def read(self) -> str:
        return EOF

    def mark(self, read_ahead_limit: int = 0) -> None:
        pass

    def reset(self) -> None:
        pass

    def close(self) -> None:
        pass
