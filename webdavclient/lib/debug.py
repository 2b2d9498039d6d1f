import datetime

from lxml import etree


def xmlstring(root):
    """Best effort pretty-printing of whatever turned up in a log message"""
    if isinstance(root, str):
        return root
    if hasattr(root, "xmlelement"):
        root = root.xmlelement()
    try:
        return etree.tostring(root, pretty_print=True).decode("utf-8")
    except TypeError:
        return str(root)


def _header_lines(headers) -> bytes:
    return b"\n".join(f"{k}: {v}".encode("utf-8") for k, v in headers.items())


def format_communication(request, response) -> bytes:
    """
    One request/response exchange, as written to the communication
    dump.  Streamed request bodies are left out.
    """
    parts = [
        b"=" * 80,
        f"{datetime.datetime.now():%FT%H:%M:%S}".encode("utf-8"),
        b"====>",
        f"{request.method.value} {request.url}".encode("utf-8"),
        _header_lines(request.headers),
        b"",
        request.body if isinstance(request.body, bytes) else b"(streamed body)",
        b"<====",
        f"{response.status} {response.reason}".encode("utf-8"),
        _header_lines(response.headers),
        b"",
        response.body,
        b"",
    ]
    return b"\n".join(parts)
