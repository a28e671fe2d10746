"""
Tests for the package endpoints.
"""

import base64

from pkgregistry.core.security import Role


class TestUpload:
    def test_upload_inline(self, client, auth, b64_zip):
        """Inline content is stored and echoed back with its metadata."""
        content = b64_zip({"index.js": b"1;"})
        r = client.post("/package", json={"Name": "X", "Version": "1.2.3", "Content": content},
                        headers=auth(Role.contributor))
        assert r.status_code == 201
        body = r.json()
        assert body["metadata"] == {"Name": "X", "Version": "1.2.3", "ID": "X_1.2.3"}
        assert body["data"]["Content"] == content

    def test_upload_duplicate(self, client, auth, b64_zip):
        """Publishing the same name and version twice is a conflict."""
        payload = {"Name": "X", "Version": "1.2.3", "Content": b64_zip({"a.js": b"1;"})}
        assert client.post("/package", json=payload, headers=auth()).status_code == 201
        assert client.post("/package", json=payload, headers=auth()).status_code == 409

    def test_upload_both_sources(self, client, auth, adapter, b64_zip):
        """URL and Content together are rejected before any fetch."""
        r = client.post("/v1/package", json={"Name": "X", "URL": "https://github.com/o/x",
                                             "Content": b64_zip({"a.js": b"1;"})},
                        headers=auth())
        assert r.status_code == 400
        assert adapter.calls == []

    def test_upload_by_url(self, client, auth, adapter):
        r = client.post("/package", json={"Name": "lib", "URL": "https://github.com/o/lib"},
                        headers=auth())
        assert r.status_code == 201
        assert r.json()["metadata"]["Version"] == "1.0.0"
        assert adapter.calls[0][0] == "https://github.com/o/lib"

    def test_upload_requires_contributor(self, client, auth, b64_zip):
        r = client.post("/package", json={"Name": "X", "Content": b64_zip({"a.js": b"1;"})},
                        headers=auth(Role.viewer))
        assert r.status_code == 403

    def test_upload_requires_token(self, client):
        assert client.post("/package", json={"Name": "X", "Content": "UEs="}).status_code == 401

    def test_invalid_token(self, client):
        r = client.post("/package", json={"Name": "X", "Content": "UEs="},
                        headers={"Authorization": "bearer not-a-jwt"})
        assert r.status_code == 401


class TestUpdate:
    def test_update_version_rules(self, client, auth, seed, b64_zip):
        """Only a higher patch in the same minor line is accepted."""
        seed("X", "1.2.5")
        data = {"Content": b64_zip({"a.js": b"1;"})}
        low = client.put("/package/X_1.2.5", json={"metadata": {"Name": "X", "Version": "1.2.3"}, "data": data},
                         headers=auth())
        assert low.status_code == 400
        ok = client.put("/package/X_1.2.5", json={"metadata": {"Name": "X", "Version": "1.2.6"}, "data": data},
                        headers=auth())
        assert ok.status_code == 200
        assert ok.json()["metadata"]["ID"] == "X_1.2.6"

    def test_update_unknown(self, client, auth, b64_zip):
        r = client.put("/package/nope_1.0.0", json={"data": {"Content": b64_zip({"a.js": b"1;"})}},
                       headers=auth())
        assert r.status_code == 404


class TestDownload:
    def test_download(self, client, auth, seed, blobs):
        rec = seed("X", "1.0.0", {"index.js": b"2;"})
        r = client.get("/package/X_1.0.0", headers=auth(Role.viewer))
        assert r.status_code == 200
        assert base64.b64decode(r.json()["data"]["Content"]) == blobs.get(rec.content_ref)

    def test_download_missing(self, client, auth):
        assert client.get("/package/none_1.0.0", headers=auth(Role.viewer)).status_code == 404


class TestQueries:
    def test_batch(self, client, auth, seed):
        seed("X", "1.2.3")
        seed("X", "1.3.0")
        r = client.post("/packages", json=[{"Name": "X"}, {"Name": "X", "Version": "1.2.3"}],
                        headers=auth(Role.viewer))
        assert r.status_code == 200
        assert [p["ID"] for p in r.json()] == ["X_1.2.3", "X_1.3.0"]

    def test_bad_range(self, client, auth):
        r = client.post("/packages", json=[{"Name": "X", "Version": "not-a-range"}], headers=auth())
        assert r.status_code == 400

    def test_too_many(self, client, auth, seed):
        for i in range(101):
            seed(f"p{i:03d}", "1.0.0")
        assert client.post("/packages", json=[{"Name": "*"}], headers=auth()).status_code == 413


class TestRegex:
    def test_match(self, client, auth, seed):
        seed("left-pad", "1.0.0")
        r = client.post("/package/byRegEx", json={"RegEx": "pad"}, headers=auth(Role.viewer))
        assert r.status_code == 200
        assert r.json() == [{"Name": "left-pad", "Version": "1.0.0", "ID": "left-pad_1.0.0"}]

    def test_no_match(self, client, auth):
        assert client.post("/package/byRegEx", json={"RegEx": "pad"}, headers=auth()).status_code == 404

    def test_unsafe(self, client, auth):
        assert client.post("/package/byRegEx", json={"RegEx": "(a+)+"}, headers=auth()).status_code == 400
