"""
Abstract I/O protocol definition.

This module defines the interface that all I/O implementations must follow.
"""

from typing import AsyncContextManager, AsyncIterator, Mapping, Protocol, runtime_checkable

from webdavclient.protocol.types import DAVRequest, DAVResponse


@runtime_checkable
class StreamResponse(Protocol):
    """
    A response whose body has not been read yet.  The body is consumed
    through iter_chunks; close() drops the rest of it and the
    connection with it.
    """

    status: int
    reason: str
    headers: Mapping[str, str]

    def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield the body in chunks of at most chunk_size bytes."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class AsyncIOProtocol(Protocol):
    """
    Protocol defining the asynchronous I/O interface.

    Implementations must provide a way to execute DAVRequest objects
    and return DAVResponse objects asynchronously.  The request method
    is an arbitrary token, the transport must not restrict it to the
    methods of RFC 7231.  A failure before a status line was received
    is raised as an exception of the implementation's choice; the
    client wraps it.
    """

    async def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a request and return the response.

        Args:
            request: The DAVRequest to execute

        Returns:
            DAVResponse with status, headers, and body
        """
        ...

    def stream(self, request: DAVRequest) -> AsyncContextManager[StreamResponse]:
        """
        Execute a request, yield the response as soon as the headers are
        in.  The response is released when the context is left.
        """
        ...

    async def close(self) -> None:
        """Close any resources (e.g., HTTP session)."""
        ...
