"""
Unit tests for Sans-I/O protocol layer.

These tests verify protocol logic without any HTTP mocking required.
All tests are pure - they test data transformations only.
"""

import pytest

from webdavclient.lib import error
from webdavclient.protocol import (
    DAVMethod,
    DAVRequest,
    DAVResponse,
    Depth,
    LockInfo,
    LockScope,
    Multistatus,
    Progress,
    Prop,
    PropertyUpdate,
    PropFind,
    Timeout,
    WebDAVProtocol,
    build_lockinfo_body,
    build_propfind_body,
    build_proppatch_body,
    parse_multistatus,
)
from webdavclient.protocol.operations import XML_CONTENT_TYPE

BASE = "http://127.0.0.1/webdav/"

MULTISTATUS_423 = (
    b'<?xml version="1.0" encoding="utf-8"?><D:multistatus xmlns:D="DAV:">'
    b"<D:response><D:href>/webdav/locked/file.txt</D:href>"
    b"<D:status>HTTP/1.1 423 Locked</D:status></D:response></D:multistatus>"
)

LOCK_BODY = (
    b'<?xml version="1.0" encoding="utf-8"?><D:prop xmlns:D="DAV:"><D:lockdiscovery>'
    b"<D:activelock><D:locktype><D:write/></D:locktype>"
    b"<D:lockscope><D:exclusive/></D:lockscope><D:depth>infinity</D:depth>"
    b"<D:timeout>Second-3600</D:timeout>"
    b"<D:locktoken><D:href>opaquelocktoken:e71d4fae-5dec</D:href></D:locktoken>"
    b"</D:activelock></D:lockdiscovery></D:prop>"
)


class TestDAVTypes:
    """Test core DAV types."""

    def test_dav_request_immutable(self):
        """DAVRequest should be immutable (frozen dataclass)."""
        request = DAVRequest(method=DAVMethod.GET, url="https://example.com/", headers={})
        with pytest.raises(AttributeError):
            request.url = "https://other.com/"

    def test_dav_request_with_header(self):
        request = DAVRequest(
            method=DAVMethod.GET,
            url="https://example.com/",
            headers={"Accept": "text/html"},
        )
        new_request = request.with_header("Depth", "0")
        assert "Depth" not in request.headers
        assert new_request.headers == {"Accept": "text/html", "Depth": "0"}

    def test_dav_request_with_body(self):
        request = DAVRequest(method=DAVMethod.PUT, url="https://example.com/a")
        assert request.body is None
        assert request.with_body(b"data").body == b"data"
        assert request.body is None

    @pytest.mark.parametrize("status,ok", [(200, True), (201, True), (207, True), (299, True), (301, False), (404, False)])
    def test_dav_response_ok(self, status, ok):
        assert DAVResponse(status=status, headers={}).ok is ok

    def test_dav_response_headers_case_insensitive(self):
        response = DAVResponse(status=200, headers={"lock-token": "<urn:x>"})
        assert response.headers["Lock-Token"] == "<urn:x>"

    def test_dav_response_reason(self):
        assert DAVResponse(status=207, headers={}).reason == "Multi-Status"
        assert DAVResponse(status=207, headers={}).is_multistatus
        assert DAVResponse(status=200, headers={}, reason="Fine").reason == "Fine"

    def test_progress_percentage(self):
        assert Progress(50, 200).percentage == 25.0
        assert Progress(200, 200).percentage == 100.0
        assert Progress(10).percentage is None
        assert Progress(0, 0).percentage is None


class TestProp:
    def test_absent_and_present(self):
        prop = Prop(displayname="test")
        assert "displayname" in prop
        assert "getetag" not in prop
        assert prop.get("displayname") == "test"
        assert prop.get("getetag", "none") == "none"
        assert len(prop) == 1

    def test_name_only(self):
        prop = Prop.name_only("displayname", "getlastmodified", ("urn:x", "color"))
        assert prop.displayname == ""
        assert prop.getlastmodified is None
        assert prop.is_name_only("getlastmodified")
        assert ("urn:x", "color") in prop
        assert prop.extension("urn:x", "color").is_empty
        assert len(prop) == 3

    def test_dashed_and_attribute_names(self):
        prop = Prop(quota_used_bytes=10)
        assert "quota-used-bytes" in prop
        assert "quota_used_bytes" in prop
        assert "{DAV:}quota-used-bytes" in prop

    def test_extension(self):
        prop = Prop()
        raw = prop.set_extension("urn:x", "color", "red")
        assert prop.get(("urn:x", "color")) is raw
        assert raw.tag == "{urn:x}color"
        assert not prop.is_name_only(("urn:x", "color"))
        assert prop.tags() == ["{urn:x}color"]

    def test_is_collection(self):
        assert Prop(resourcetype=["{DAV:}collection"]).is_collection
        assert Prop(iscollection=True).is_collection
        assert not Prop(resourcetype=[]).is_collection
        assert not Prop().is_collection


class TestPropertyUpdate:
    def test_chained_operations_keep_order(self):
        update = PropertyUpdate().set(displayname="a").remove("getcontentlanguage").set(displayname="b")
        assert len(update) == 3
        ops = list(update)
        assert ops[0].prop.displayname == "a"
        assert ops[1].prop.is_name_only("getcontentlanguage")
        assert ops[2].prop.displayname == "b"


class TestMultistatus:
    def test_find_ignores_host_and_slashes(self):
        multistatus = parse_multistatus(
            b'<D:multistatus xmlns:D="DAV:"><D:response>'
            b"<D:href>http://127.0.0.1/webdav/my%20folder/</D:href>"
            b"<D:status>HTTP/1.1 200 OK</D:status></D:response></D:multistatus>"
        )
        assert multistatus.find("/webdav/my folder") is multistatus[0]
        assert multistatus.find("http://localhost/webdav/my%20folder/") is multistatus[0]

    def test_empty(self):
        multistatus = Multistatus()
        assert len(multistatus) == 0
        assert multistatus.failures() == []
        multistatus.raise_for_failures()


class TestRequestBuilders:
    def setup_method(self):
        self.protocol = WebDAVProtocol(base_url=BASE, username="user", password="pass")

    def test_basic_auth(self):
        request = self.protocol.get_request("file.txt")
        assert request.headers["Authorization"] == "Basic dXNlcjpwYXNz"

    def test_no_auth_without_credentials(self):
        request = WebDAVProtocol(base_url=BASE).get_request("file.txt")
        assert "Authorization" not in request.headers

    def test_extra_headers(self):
        protocol = WebDAVProtocol(base_url=BASE, headers={"X-Test": "1"})
        assert protocol.options_request().headers["X-Test"] == "1"

    def test_options_defaults_to_base(self):
        request = self.protocol.options_request()
        assert request.method == DAVMethod.OPTIONS
        assert request.url == BASE

    def test_get_and_head(self):
        assert self.protocol.get_request("a b.txt").url == BASE + "a%20b.txt"
        assert self.protocol.head_request("/other/x").url == "http://127.0.0.1/other/x"

    def test_put(self):
        request = self.protocol.put_request("folder/file.txt/", b"data", "text/plain")
        assert request.method == DAVMethod.PUT
        assert request.url == BASE + "folder/file.txt"
        assert request.headers["Content-Type"] == "text/plain"
        assert request.body == b"data"
        assert "If" not in request.headers

    def test_put_default_content_type_and_lock(self):
        request = self.protocol.put_request("file.txt", b"", lock_tokens="opaquelocktoken:abc")
        assert request.headers["Content-Type"] == "application/octet-stream"
        assert request.headers["If"] == "(<opaquelocktoken:abc>)"

    def test_delete_with_several_locks(self):
        request = self.protocol.delete_request("x", lock_tokens=["urn:uuid:a", "b"])
        assert request.method == DAVMethod.DELETE
        assert request.headers["If"] == "(<urn:uuid:a>) (<opaquelocktoken:b>)"

    def test_mkcol_adds_trailing_slash(self):
        request = self.protocol.mkcol_request("new folder")
        assert request.method == DAVMethod.MKCOL
        assert request.url == BASE + "new%20folder/"
        assert request.body is None

    def test_propfind_defaults(self):
        request = self.protocol.propfind_request("")
        assert request.method == DAVMethod.PROPFIND
        assert request.url == BASE
        assert "Depth" not in request.headers
        assert request.headers["Content-Type"] == XML_CONTENT_TYPE
        assert request.body == build_propfind_body(PropFind.allprop())

    def test_propfind_named_depth(self):
        propfind = PropFind.named("displayname")
        request = self.protocol.propfind_request("file.txt", propfind, Depth.ZERO)
        assert request.headers["Depth"] == "0"
        assert request.body == build_propfind_body(propfind)

    def test_propfind_raw_body(self):
        request = self.protocol.propfind_request("", "<D:propfind xmlns:D='DAV:'/>", Depth.ONE)
        assert request.body == b"<D:propfind xmlns:D='DAV:'/>"
        assert request.headers["Depth"] == "1"

    def test_proppatch(self):
        update = PropertyUpdate().set(displayname="Test")
        request = self.protocol.proppatch_request("file.txt", update, lock_tokens="tok")
        assert request.method == DAVMethod.PROPPATCH
        assert request.body == build_proppatch_body(update)
        assert request.headers["If"] == "(<opaquelocktoken:tok>)"

    def test_copy(self):
        request = self.protocol.copy_request("a.txt", "b.txt")
        assert request.method == DAVMethod.COPY
        assert request.headers["Depth"] == "infinity"
        assert request.headers["Destination"] == BASE + "b.txt"
        assert "Overwrite" not in request.headers

    def test_copy_depth_zero_no_overwrite(self):
        request = self.protocol.copy_request(
            "folder/", "https://other.example.com/folder/", Depth.ZERO, overwrite=False
        )
        assert request.headers["Depth"] == "0"
        assert request.headers["Destination"] == "https://other.example.com/folder/"
        assert request.headers["Overwrite"] == "F"

    def test_move(self):
        request = self.protocol.move_request("a.txt", "/elsewhere/b.txt", overwrite=True)
        assert request.method == DAVMethod.MOVE
        assert "Depth" not in request.headers
        assert request.headers["Destination"] == "http://127.0.0.1/elsewhere/b.txt"
        assert request.headers["Overwrite"] == "T"

    def test_lock(self):
        info = LockInfo(scope=LockScope.SHARED, owner="me")
        request = self.protocol.lock_request("file.txt", info, timeout=Timeout.of(60))
        assert request.method == DAVMethod.LOCK
        assert request.headers["Depth"] == "infinity"
        assert request.headers["Timeout"] == "Second-60"
        assert request.body == build_lockinfo_body(info)

    def test_lock_defaults(self):
        request = self.protocol.lock_request("file.txt")
        assert "Timeout" not in request.headers
        assert request.body == build_lockinfo_body(LockInfo())

    def test_lock_timeout_preferences(self):
        request = self.protocol.lock_request(
            "file.txt", timeout=[Timeout.infinite(), Timeout.of(3600)], depth=Depth.ZERO
        )
        assert request.headers["Timeout"] == "Infinite, Second-3600"
        assert request.headers["Depth"] == "0"

    def test_lock_depth_one_is_refused(self):
        with pytest.raises(error.HeaderFormatError):
            self.protocol.lock_request("file.txt", depth=Depth.ONE)

    def test_lock_timeout_out_of_range(self):
        with pytest.raises(error.HeaderFormatError):
            self.protocol.lock_request("file.txt", timeout=Timeout.of(0))

    def test_refresh_lock(self):
        request = self.protocol.refresh_lock_request(
            "file.txt", "opaquelocktoken:abc", timeout=Timeout.infinite()
        )
        assert request.method == DAVMethod.LOCK
        assert request.body is None
        assert request.headers["If"] == "(<opaquelocktoken:abc>)"
        assert request.headers["Timeout"] == "Infinite"

    def test_refresh_lock_without_token(self):
        request = self.protocol.refresh_lock_request("file.txt", None)
        assert "If" not in request.headers

    def test_unlock(self):
        request = self.protocol.unlock_request("file.txt", "<opaquelocktoken:abc>")
        assert request.method == DAVMethod.UNLOCK
        assert request.headers["Lock-Token"] == "<opaquelocktoken:abc>"
        assert "Lock-Token" not in self.protocol.unlock_request("file.txt", "").headers

    def test_relative_path_without_base(self):
        with pytest.raises(error.UriError):
            WebDAVProtocol().get_request("file.txt")
        assert WebDAVProtocol().get_request("http://h/x").url == "http://h/x"


class TestResponseHandling:
    def setup_method(self):
        self.protocol = WebDAVProtocol(base_url=BASE)
        self.request = self.protocol.get_request("locked/file.txt")

    def test_success_passes_through(self):
        response = DAVResponse(status=204, headers={})
        assert self.protocol.check_response(self.request, response) is response

    @pytest.mark.parametrize(
        "status,exception",
        [
            (401, error.AuthorizationError),
            (403, error.AuthorizationError),
            (404, error.NotFoundError),
            (412, error.PreconditionFailedError),
            (423, error.LockedError),
            (409, error.ProtocolError),
            (500, error.ProtocolError),
        ],
    )
    def test_error_classification(self, status, exception):
        with pytest.raises(exception) as excinfo:
            self.protocol.check_response(self.request, DAVResponse(status=status, headers={}))
        err = excinfo.value
        assert type(err) is exception
        assert isinstance(err, error.RequestError)
        assert err.status == status
        assert err.method == "GET"
        assert err.url == BASE + "locked/file.txt"
        assert err.multistatus is None

    def test_error_with_multistatus(self):
        response = DAVResponse(
            status=423, headers={"Content-Type": "application/xml"}, body=MULTISTATUS_423
        )
        with pytest.raises(error.LockedError) as excinfo:
            self.protocol.check_response(self.request, response)
        assert excinfo.value.multistatus[0].status.code == 423

    def test_error_with_html_body(self):
        response = DAVResponse(
            status=500, headers={"Content-Type": "text/html"}, body=b"<html>oops</html>"
        )
        with pytest.raises(error.ProtocolError) as excinfo:
            self.protocol.check_response(self.request, response)
        assert excinfo.value.multistatus is None
        assert excinfo.value.reason == "Internal Server Error"

    def test_parse_multistatus_empty_body(self):
        assert self.protocol.parse_multistatus(self.request, DAVResponse(204, {})) is None
        with pytest.raises(error.ParseError):
            self.protocol.parse_multistatus(self.request, DAVResponse(207, {}))

    def test_parse_multistatus_sets_url_on_error(self):
        with pytest.raises(error.ParseError) as excinfo:
            self.protocol.parse_multistatus(self.request, DAVResponse(207, {}, b"<broken"))
        assert excinfo.value.url == self.request.url

    def test_parse_lock_token_from_header(self):
        response = DAVResponse(
            200, {"Lock-Token": "<opaquelocktoken:e71d4fae-5dec>"}, LOCK_BODY
        )
        token, lock = self.protocol.parse_lock(self.request, response)
        assert token == "opaquelocktoken:e71d4fae-5dec"
        assert lock.scope == LockScope.EXCLUSIVE
        assert lock.timeout == Timeout.of(3600)

    def test_parse_lock_token_from_body(self):
        token, lock = self.protocol.parse_lock(self.request, DAVResponse(200, {}, LOCK_BODY))
        assert token == "opaquelocktoken:e71d4fae-5dec"

    def test_parse_lock_without_body(self):
        response = DAVResponse(200, {"Lock-Token": "<urn:uuid:1>"})
        assert self.protocol.parse_lock(self.request, response) == ("urn:uuid:1", None)

    def test_parse_lock_unbracketed_header(self, caplog):
        response = DAVResponse(200, {"Lock-Token": "opaquelocktoken:e71d4fae-5dec"}, LOCK_BODY)
        token, lock = self.protocol.parse_lock(self.request, response)
        assert token == "opaquelocktoken:e71d4fae-5dec"
        assert lock.timeout == Timeout.of(3600)
        assert "malformed Lock-Token header" in caplog.text

    def test_parse_lock_unbracketed_header_without_body(self):
        response = DAVResponse(200, {"Lock-Token": "urn:uuid:1"})
        assert self.protocol.parse_lock(self.request, response) == ("urn:uuid:1", None)
