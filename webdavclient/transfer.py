"""
Streaming GET and PUT with progress reporting and cooperative
cancellation.

Progress callbacks are called synchronously after every chunk, in
order.  Cancellation is checked before the request is sent and between
chunks, never elsewhere; what was transferred before the check stays
transferred.
"""

import inspect
import logging
import os
import threading
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Optional, Union

from webdavclient.io.base import AsyncIOProtocol, StreamResponse
from webdavclient.lib import error
from webdavclient.protocol.operations import LockTokens, WebDAVProtocol
from webdavclient.protocol.types import DAVRequest, DAVResponse, Progress
from webdavclient.response import WebDAVResponse

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[Progress], Any]
Sender = Callable[[DAVRequest], Awaitable[DAVResponse]]
UploadSource = Union[bytes, AsyncIterable[bytes], Any]


class CancellationToken:
    """
    A cancellation flag that may be set from any thread.  Transfers
    check it between chunks.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class TransferResult:
    """
    Outcome of a streamed transfer.  response is None if the transfer
    was cancelled before the server answered.
    """

    response: Optional[WebDAVResponse]
    bytes_transferred: int = 0
    cancelled: bool = False

    @property
    def status(self) -> Optional[int]:
        return self.response.status if self.response is not None else None


class _Cancelled(Exception):
    pass


def _is_cancelled(cancellation: Optional[CancellationToken]) -> bool:
    return cancellation is not None and cancellation.cancelled


async def _aclose(chunks: Any) -> None:
    aclose = getattr(chunks, "aclose", None)
    if aclose is not None:
        await aclose()


def _caused_by_cancel(err: Optional[BaseException]) -> bool:
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, _Cancelled):
            return True
        seen.add(id(err))
        err = err.__cause__ or err.__context__
    return False


def _content_length(headers) -> Optional[int]:
    try:
        length = int(headers.get("Content-Length"))
    except (TypeError, ValueError):
        return None
    return length if length >= 0 else None


def _source_size(source: UploadSource) -> Optional[int]:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return len(source)
    try:
        pos = source.tell()
        end = source.seek(0, os.SEEK_END)
        source.seek(pos)
    except (AttributeError, OSError, ValueError):
        return None
    return end - pos


class TransferEngine:
    """
    Copies response bodies to a sink, and request bodies from a source,
    chunk by chunk.
    """

    def __init__(
        self,
        protocol: WebDAVProtocol,
        io: AsyncIOProtocol,
        send: Sender,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.protocol = protocol
        self.io = io
        self.send = send
        self.chunk_size = chunk_size

    async def _chunks(
        self, request: DAVRequest, stream: StreamResponse, chunk_size: int
    ) -> AsyncIterator[bytes]:
        chunks = stream.iter_chunks(chunk_size)
        try:
            async for chunk in chunks:
                yield chunk
        except error.DAVError:
            raise
        except Exception as err:
            raise error.TransportError(
                url=request.url,
                reason=str(err) or type(err).__name__,
                method=request.method.value,
            ) from err
        finally:
            await _aclose(chunks)

    async def download(
        self,
        url: str,
        sink: Any,
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
        chunk_size: Optional[int] = None,
    ) -> TransferResult:
        """
        GET a resource and write its body to sink.

        Args:
            url: Resource path or URL
            sink: Object with a write(bytes) method, which may be a
                  coroutine function
            cancellation: Checked between chunks; when set, the response
                  is closed and sink keeps what was written so far
            progress: Called with a Progress after each chunk written
            chunk_size: Maximum size of a chunk, defaults to the
                  engine's chunk_size

        Returns:
            TransferResult
        """
        chunk_size = chunk_size or self.chunk_size
        request = self.protocol.get_request(url)
        if _is_cancelled(cancellation):
            log.debug("download of %s cancelled before start", request.url)
            return TransferResult(None, 0, cancelled=True)

        async with AsyncExitStack() as stack:
            try:
                stream = await stack.enter_async_context(self.io.stream(request))
            except error.DAVError:
                raise
            except Exception as err:
                raise error.TransportError(
                    url=request.url,
                    reason=str(err) or type(err).__name__,
                    method=request.method.value,
                ) from err
            log.debug("server responded with %s %s", stream.status, stream.reason)

            head = DAVResponse(stream.status, stream.headers, b"", stream.reason)
            if not head.ok:
                body = b"".join([c async for c in self._chunks(request, stream, chunk_size)])
                self.protocol.check_response(
                    request, DAVResponse(stream.status, stream.headers, body, stream.reason)
                )

            total = _content_length(stream.headers)
            transferred = 0
            cancelled = False
            chunks = self._chunks(request, stream, chunk_size)
            stack.push_async_callback(_aclose, chunks)
            async for chunk in chunks:
                if _is_cancelled(cancellation):
                    log.debug("download of %s cancelled after %i bytes", request.url, transferred)
                    stream.close()
                    cancelled = True
                    break
                ret = sink.write(chunk)
                if inspect.isawaitable(ret):
                    await ret
                transferred += len(chunk)
                if progress is not None:
                    progress(Progress(transferred, total))
            return TransferResult(WebDAVResponse(request, head), transferred, cancelled)

    async def _source_chunks(
        self,
        source: UploadSource,
        chunk_size: int,
        cancellation: Optional[CancellationToken],
        progress: Optional[ProgressCallback],
        total: Optional[int],
        counter: list,
    ) -> AsyncIterator[bytes]:
        chunks = self._read_source(source, chunk_size)
        try:
            async for chunk in chunks:
                if _is_cancelled(cancellation):
                    raise _Cancelled()
                yield chunk
                counter[0] += len(chunk)
                if progress is not None:
                    progress(Progress(counter[0], total))
        finally:
            await _aclose(chunks)

    async def _read_source(self, source: UploadSource, chunk_size: int) -> AsyncIterator[bytes]:
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
            for pos in range(0, len(data), chunk_size):
                yield data[pos : pos + chunk_size]
        elif hasattr(source, "read"):
            while True:
                chunk = source.read(chunk_size)
                if inspect.isawaitable(chunk):
                    chunk = await chunk
                if not chunk:
                    break
                if isinstance(chunk, str):
                    chunk = chunk.encode("utf-8")
                yield chunk
        elif hasattr(source, "__aiter__"):
            async for chunk in source:
                yield chunk
        else:
            raise TypeError("can't upload from %r" % (source,))

    async def upload(
        self,
        url: str,
        source: UploadSource,
        content_type: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
        lock_tokens: LockTokens = None,
        total_bytes: Optional[int] = None,
        chunk_size: Optional[int] = None,
    ) -> TransferResult:
        """
        PUT a body streamed from source: bytes, a file-like object
        (read may be a coroutine function) or an async iterable of
        bytes.

        A cancelled upload aborts the request, the server may or may
        not have stored a truncated resource.  If total_bytes is not
        given, it is found out for bytes and seekable files.
        """
        chunk_size = chunk_size or self.chunk_size
        if _is_cancelled(cancellation):
            return TransferResult(None, 0, cancelled=True)
        if total_bytes is None:
            total_bytes = _source_size(source)
        counter = [0]
        body = self._source_chunks(
            source, chunk_size, cancellation, progress, total_bytes, counter
        )
        request = self.protocol.put_request(url, body, content_type, lock_tokens=lock_tokens)
        try:
            response = await self.send(request)
        except (error.RequestError, _Cancelled) as err:
            if not _caused_by_cancel(err):
                raise
            log.debug("upload to %s cancelled after %i bytes", request.url, counter[0])
            return TransferResult(None, counter[0], cancelled=True)
        return TransferResult(WebDAVResponse(request, response), counter[0])
