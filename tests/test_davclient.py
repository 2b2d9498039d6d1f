#!/usr/bin/env python
"""
Tests for the synchronous DAVClient wrapper.

Rule: None of the tests in this file should initiate any internet
communication. The server is emulated with MockIO from fixture_helpers.
"""
import pytest
from fixture_helpers import BytesSink, MockIO

from webdavclient import DAVClient
from webdavclient.davclient import get_davclient
from webdavclient.lib import error
from webdavclient.protocol import Depth, PropertyUpdate, Timeout
from webdavclient.transfer import CancellationToken

BASE = "http://127.0.0.1/webdav/"
FILE = BASE + "TestFile1.txt"

PROPFIND_RESPONSE = (
    b'<?xml version="1.0" encoding="utf-8"?><D:multistatus xmlns:D="DAV:">'
    b"<D:response><D:href>/webdav/</D:href><D:propstat>"
    b"<D:prop><D:resourcetype><D:collection/></D:resourcetype></D:prop>"
    b"<D:status>HTTP/1.1 200 OK</D:status></D:propstat></D:response>"
    b"<D:response><D:href>/webdav/TestFile1.txt</D:href><D:propstat>"
    b"<D:prop><D:resourcetype/><D:getcontentlength>31</D:getcontentlength></D:prop>"
    b"<D:status>HTTP/1.1 200 OK</D:status></D:propstat></D:response>"
    b"</D:multistatus>"
)


class TestDAVClient:
    def test_verbs(self):
        mock_io = (
            MockIO()
            .expect("PUT", FILE, status=201)
            .expect("PROPFIND", BASE, status=207, body=PROPFIND_RESPONSE, request_headers={"Depth": "1"})
            .expect("PROPPATCH", FILE, status=200, body=b"")
            .expect("COPY", FILE, status=204)
            .expect("DELETE", FILE, status=204)
        )
        with DAVClient(url=BASE, io=mock_io) as client:
            assert client.url == BASE
            assert client.put("TestFile1.txt", "content").status == 201
            multistatus = client.propfind("", depth=Depth.ONE).multistatus
            assert [r.prop.is_collection for r in multistatus] == [True, False]
            assert multistatus.find(FILE).prop.getcontentlength == 31
            response = client.proppatch("TestFile1.txt", PropertyUpdate().set(displayname="x"))
            assert response.multistatus is None
            assert client.copy("TestFile1.txt", "TestFile2.txt").status == 204
            assert client.delete("TestFile1.txt").status == 204
        assert mock_io.closed

    def test_errors_propagate(self):
        with DAVClient(url=BASE, io=MockIO().expect("GET", FILE, status=404)) as client:
            with pytest.raises(error.NotFoundError):
                client.get("TestFile1.txt")
            with pytest.raises(error.TransportError):
                client.head("TestFile1.txt")

    def test_lock_and_unlock(self):
        token = "opaquelocktoken:abc"
        mock_io = (
            MockIO()
            .expect("LOCK", FILE, headers={"Lock-Token": "<%s>" % token})
            .expect("LOCK", FILE, request_headers={"If": "(<%s>)" % token})
            .expect("UNLOCK", FILE, status=204, request_headers={"Lock-Token": "<%s>" % token})
        )
        with DAVClient(url=BASE, io=mock_io) as client:
            assert client.lock("TestFile1.txt", timeout=Timeout.of(60)).lock_token == token
            client.refresh_lock("TestFile1.txt", token)
            client.unlock("TestFile1.txt", token)
            with pytest.raises(error.HeaderFormatError):
                client.lock("TestFile1.txt", depth=Depth.ONE)

    def test_download_and_upload(self):
        mock_io = (
            MockIO()
            .expect("GET", FILE, body=b"0123456789", headers={"Content-Length": "10"})
            .expect("PUT", FILE, status=201, request_body=b"0123456789")
        )
        reports = []
        with DAVClient(url=BASE, io=mock_io, chunk_size=4) as client:
            sink = BytesSink()
            result = client.download("TestFile1.txt", sink, progress=reports.append)
            assert sink.data == b"0123456789"
            assert [p.bytes_transferred for p in reports] == [4, 8, 10]
            result = client.upload("TestFile1.txt", sink.data, cancellation=CancellationToken())
            assert result.status == 201

    def test_closed_client(self):
        client = DAVClient(url=BASE, io=MockIO())
        client.close()
        client.close()
        with pytest.raises(RuntimeError):
            client.options()


class TestGetDAVClient:
    def test_probe(self, monkeypatch):
        monkeypatch.delenv("WEBDAV_URL", raising=False)
        mock_io = MockIO().expect("OPTIONS", BASE, headers={"DAV": "1, 2"})
        with get_davclient(url=BASE, io=mock_io) as client:
            assert client.url == BASE
        assert mock_io.closed

    def test_probe_failure(self):
        mock_io = MockIO()
        with pytest.raises(error.TransportError):
            get_davclient(url=BASE, io=mock_io)
        assert mock_io.closed
