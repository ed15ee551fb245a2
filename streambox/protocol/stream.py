"""
Shared pull-loop machinery for the encrypting and decrypting transforms.

Both directions are the same algorithm: keep pulling one unit (a plaintext
chunk or a ciphertext record) from upstream until enough bytes are pending
to satisfy the read, then serve from the head of the pending buffer. The
per-unit work is supplied by subclasses through ``_pull()``.

A transform instance belongs to a single consumer. Concurrent ``read`` calls
on one instance are not supported.
"""

import io
import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class StreamError(Exception):
    """Base class for all stream transform failures."""
    pass


class StreamFailedError(StreamError):
    """Raised when reading from a transform that already failed."""
    pass


class StreamState(Enum):
    """Lifecycle of a transform instance."""
    ACTIVE = "active"        # upstream still has data
    DRAINING = "draining"    # upstream exhausted, pending bytes remain
    ENDED = "ended"          # upstream exhausted, nothing pending
    FAILED = "failed"        # a fatal error was raised


class PullResult(Enum):
    """Outcome of pulling one unit from upstream."""
    PROGRESS = "progress"    # a unit was processed and buffered
    EXHAUSTED = "exhausted"  # upstream ended cleanly
    STALLED = "stalled"      # upstream had nothing yet but is not finished


class PendingBuffer:
    """
    Bytes produced but not yet handed to the caller.

    A single ``bytearray`` arena with a head offset: appends go to the tail,
    reads advance the head. Consumed space is reclaimed once the head passes
    the middle of the arena.
    """

    def __init__(self):
        self._data = bytearray()
        self._head = 0

    def __len__(self) -> int:
        return len(self._data) - self._head

    def append(self, data: bytes) -> None:
        self._data += data

    def take(self, size: int) -> bytes:
        """Remove and return up to ``size`` bytes from the head."""
        size = min(size, len(self))
        chunk = bytes(self._data[self._head:self._head + size])
        self._head += size
        self._compact()
        return chunk

    def clear(self) -> None:
        self._data = bytearray()
        self._head = 0

    def _compact(self) -> None:
        if self._head == len(self._data):
            self._data.clear()
            self._head = 0
        elif self._head > len(self._data) // 2:
            del self._data[:self._head]
            self._head = 0


class StreamTransform(io.RawIOBase):
    """
    Readable byte stream produced by transforming an upstream source.

    Subclasses implement ``_pull()``, which processes exactly one upstream
    unit, appends its output to ``self._buffer`` and reports a PullResult.
    Any exception escaping ``_pull()`` moves the instance to FAILED; later
    reads raise StreamFailedError instead of touching upstream again.
    """

    _closefd = False

    def __init__(self, source, closefd: bool = False):
        """
        Initialize the transform.

        Args:
            source: Upstream object with a ``read(n)`` method
            closefd: Also close ``source`` when this transform is closed
        """
        super().__init__()
        self._source = source
        self._buffer = PendingBuffer()
        self._exhausted = False
        self._failure: Optional[BaseException] = None
        self.records_processed = 0
        self.bytes_delivered = 0

        if not hasattr(source, 'read'):
            raise TypeError("Source must provide a read() method")
        self._closefd = closefd

    @property
    def state(self) -> StreamState:
        """Current lifecycle state."""
        if self._failure is not None:
            return StreamState.FAILED
        if not self._exhausted:
            return StreamState.ACTIVE
        if len(self._buffer):
            return StreamState.DRAINING
        return StreamState.ENDED

    @property
    def pending(self) -> int:
        """Number of processed bytes waiting to be read."""
        return len(self._buffer)

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        """
        Read up to ``size`` transformed bytes.

        Returns ``b""`` only at end of stream. A negative or omitted size
        reads everything up to the end.
        """
        self._check_usable()
        if size is None:
            size = -1

        try:
            self._top_up(size)
        except Exception as e:
            self._fail(e)
            raise

        if size < 0:
            size = len(self._buffer)
        data = self._buffer.take(size)
        self.bytes_delivered += len(data)
        return data

    def readall(self) -> bytes:
        return self.read(-1)

    def readinto(self, b) -> int:
        with memoryview(b) as view, view.cast('B') as target:
            data = self.read(len(target))
            target[:len(data)] = data
        return len(data)

    def close(self) -> None:
        if not self.closed and self._closefd:
            self._source.close()
        super().close()

    def _top_up(self, size: int) -> None:
        while (size < 0 or len(self._buffer) < size) and not self._exhausted:
            result = self._pull()
            if result is PullResult.EXHAUSTED:
                self._exhausted = True
            elif result is PullResult.STALLED and size >= 0 and len(self._buffer):
                # Bounded reads serve what is ready; unbounded reads run to the end
                break

    def _pull(self) -> PullResult:
        raise NotImplementedError

    def _check_usable(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        if self._failure is not None:
            raise StreamFailedError(
                f"{type(self).__name__} already failed: {self._failure}"
            ) from self._failure

    def _fail(self, error: BaseException) -> None:
        self._failure = error
        self._buffer.clear()
        logger.debug(
            "%s failed after %d records: %s",
            type(self).__name__, self.records_processed, error
        )

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} state={self.state.value} "
            f"records={self.records_processed} pending={len(self._buffer)}>"
        )
