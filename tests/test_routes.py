"""
Tests for the HTTP routes, run in-process through FastAPI's TestClient.
"""

import base64
import os

import pytest

from conftest import DEVICE_IP, multipart_body
from localdrop.api.routes import content_disposition

CORS_ORIGIN = "access-control-allow-origin"


def upload_json(client, filename, data: bytes, mime_type="text/plain"):
    return client.post(
        "/api/upload",
        json={
            "filename": filename,
            "mimeType": mime_type,
            "data": base64.b64encode(data).decode("ascii"),
        },
    )


class TestStatusAndPage:

    def test_status(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "status": "running",
            "port": 8080,
            "ip": DEVICE_IP,
        }

    def test_index_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert f"{DEVICE_IP}:8080" in response.text
        assert "setInterval(loadFiles, 5000)" in response.text

    def test_index_before_address_is_known(self, client, ctx):
        ctx.set_ip(None)
        assert "unknown:8080" in client.get("/").text


class TestListing:

    def test_empty(self, client):
        assert client.get("/api/files").json() == {"success": True, "files": []}

    def test_lists_in_registry_order(self, client, ctx, shared_file):
        first = ctx.manager.share_file(shared_file("one.txt"))
        second = ctx.manager.share_file(shared_file("two.pdf"))

        files = client.get("/api/files").json()["files"]

        assert [f["id"] for f in files] == [first.id, second.id]
        assert files[1] == {
            "id": second.id,
            "name": "two.pdf",
            "size": second.size,
            "mimeType": "application/pdf",
            "direction": "sent",
            "downloadUrl": f"/api/files/{second.id}",
        }

    def test_reflects_every_mutation_immediately(self, client, ctx, shared_file):
        """No restart is needed for the server to see application-side changes."""
        path = shared_file()
        kept = []
        for i in range(30):
            record = ctx.manager.share_file(path, name=f"f{i}.txt")
            if i % 3 == 0:
                ctx.manager.remove(record.id)
            else:
                kept.append(record.id)

        ids = [f["id"] for f in client.get("/api/files").json()["files"]]
        assert ids == kept


class TestDownload:

    def test_streams_binary(self, client, ctx, shared_file):
        content = os.urandom(200_000)
        record = ctx.manager.share_file(shared_file("big.bin", content))

        response = client.get(f"/api/files/{record.id}")

        assert response.status_code == 200
        assert response.content == content
        assert response.headers["content-type"] == "application/octet-stream"
        assert response.headers["content-disposition"] == 'attachment; filename="big.bin"'
        assert response.headers[CORS_ORIGIN] == "*"

    def test_data_uri_for_json_clients(self, client, ctx, shared_file):
        record = ctx.manager.share_file(shared_file("hi.txt", b"hi"))

        response = client.get(f"/api/files/{record.id}", headers={"Accept": "application/json"})

        assert response.json() == {
            "success": True,
            "filename": "hi.txt",
            "dataUri": "data:text/plain;base64,aGk=",
        }

    def test_unknown_id(self, client):
        response = client.get("/api/files/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "File not found"}
        assert response.headers[CORS_ORIGIN] == "*"

    def test_backing_file_gone(self, client, ctx, shared_file):
        path = shared_file()
        record = ctx.manager.share_file(path)
        os.remove(path)

        response = client.get(f"/api/files/{record.id}")
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_non_ascii_filename_header(self):
        value = content_disposition('résumé "final".pdf')
        assert value.startswith('attachment; filename="r_sum_ _final_.pdf"')
        assert "filename*=UTF-8''r%C3%A9sum%C3%A9%20%22final%22.pdf" in value


class TestDelete:

    def test_delete_is_idempotent(self, client, ctx, shared_file):
        record = ctx.manager.share_file(shared_file())

        first = client.delete(f"/api/files/{record.id}")
        second = client.delete(f"/api/files/{record.id}")

        assert first.json() == {"success": True}
        assert second.json() == {"success": True}
        assert ctx.manager.list() == []

    def test_delete_unknown(self, client):
        response = client.delete("/api/files/never-existed")
        assert response.status_code == 200
        assert response.json() == {"success": True}


class TestUpload:

    def test_json_upload_then_download(self, client):
        data = bytes(range(256)) * 10

        uploaded = upload_json(client, "table.bin", data, "application/x-test")

        assert uploaded.status_code == 200
        body = uploaded.json()
        assert body["success"] is True
        record = body["file"]
        assert record["name"] == "table.bin"
        assert record["mimeType"] == "application/x-test"
        assert record["direction"] == "received"
        assert record["size"] == len(data)

        downloaded = client.get(f"/api/files/{record['id']}")
        assert downloaded.content == data
        assert 'filename="table.bin"' in downloaded.headers["content-disposition"]
        assert downloaded.headers["content-type"] == "application/x-test"

    def test_multipart_upload_then_download(self, client):
        payload = b"\x00\xff\r\n--\r\n\xfe binary"
        body = multipart_body("scan.pdf", payload, boundary="xyzzy", content_type="application/pdf")

        uploaded = client.post(
            "/api/upload",
            content=body,
            headers={"Content-Type": "multipart/form-data; boundary=xyzzy"},
        )

        assert uploaded.status_code == 200
        record = uploaded.json()["file"]
        assert record["name"] == "scan.pdf"
        assert record["mimeType"] == "application/pdf"

        listed = client.get("/api/files").json()["files"]
        assert [f["id"] for f in listed] == [record["id"]]
        assert client.get(f"/api/files/{record['id']}").content == payload

    def test_httpx_multipart_form(self, client):
        """A real form encoder's output, boundary taken from the header."""
        response = client.post(
            "/api/upload",
            files={"file": ("photo.jpg", b"\xff\xd8\xff\xe0jpeg", "image/jpeg")},
        )

        assert response.status_code == 200
        record = response.json()["file"]
        assert record["name"] == "photo.jpg"
        assert client.get(f"/api/files/{record['id']}").content == b"\xff\xd8\xff\xe0jpeg"

    def test_multipart_without_content_type_header(self, client):
        """Boundary sniffed from a browser-style body."""
        body = multipart_body("a.txt", b"hello")

        response = client.post("/api/upload", content=body, headers={"Content-Type": "text/plain"})

        assert response.status_code == 200
        assert response.json()["file"]["name"] == "a.txt"

    def test_sibling_uploads_keep_their_own_bytes(self, client):
        a = upload_json(client, "same.txt", b"first").json()["file"]
        b = upload_json(client, "same.txt", b"second").json()["file"]

        assert client.get(f"/api/files/{a['id']}").content == b"first"
        assert client.get(f"/api/files/{b['id']}").content == b"second"

    def test_control_characters_in_filename(self, client):
        response = upload_json(client, "a\x00b.txt", b"payload")

        assert response.status_code == 200
        record = response.json()["file"]
        assert record["name"] == "ab.txt"
        assert client.get(f"/api/files/{record['id']}").content == b"payload"

    @pytest.mark.parametrize("kwargs, error", [
        ({"content": b""}, "No data received"),
        ({"json": {"filename": "a.txt"}}, "No file data provided"),
        ({"content": b"{not json", "headers": {"Content-Type": "application/json"}}, "Invalid JSON body"),
        ({"json": {"filename": "a.txt", "data": "%%%%"}}, None),
        ({"content": b"plain bytes", "headers": {"Content-Type": "text/plain"}}, None),
    ])
    def test_invalid_uploads(self, client, ctx, kwargs, error):
        response = client.post("/api/upload", **kwargs)

        assert response.status_code == 400
        assert response.json()["success"] is False
        if error:
            assert response.json()["error"] == error
        assert response.headers[CORS_ORIGIN] == "*"
        assert ctx.manager.list() == []

    def test_storage_failure_is_500(self, client, ctx, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file where the storage dir should be")
        ctx.storage._root = blocker

        response = upload_json(client, "a.txt", b"x")

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert ctx.manager.list() == []


class TestDispatchBoundary:

    @pytest.mark.parametrize("path", ["/", "/api/files", "/api/anything/at/all"])
    def test_options_preflight(self, client, path):
        response = client.options(path)

        assert response.status_code == 204
        assert response.content == b""
        assert response.headers[CORS_ORIGIN] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, DELETE, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type, Accept"

    @pytest.mark.parametrize("method, path", [
        ("GET", "/nope"),
        ("GET", "/api/upload"),
        ("PUT", "/api/files/x"),
        ("POST", "/api/files"),
        ("GET", "/docs"),
    ])
    def test_not_found(self, client, method, path):
        response = client.request(method, path)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Not found"}
        assert response.headers[CORS_ORIGIN] == "*"

    def test_handler_crash_is_500_and_server_survives(self, client, ctx, monkeypatch):
        def explode():
            raise RuntimeError("boom")

        monkeypatch.setattr(ctx.manager, "list", explode)
        response = client.get("/api/files")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}
        assert response.headers[CORS_ORIGIN] == "*"

        monkeypatch.undo()
        assert client.get("/api/files").status_code == 200

    @pytest.mark.parametrize("path", ["/", "/api/status", "/api/files"])
    def test_cors_on_success(self, client, path):
        assert client.get(path).headers[CORS_ORIGIN] == "*"
