import inspect
import json
from pathlib import Path

import httpx
import pytest

from app.api.v1.uploads import upload_image
from app.core import settings as settings_module
from app.core.exceptions import ConfigurationError, UploadRejectedError
from app.services.media import LocalMediaStore, ObjectStorageMediaStore, get_media_store, validate_image_upload


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _stored_files():
    root = Path(settings_module.settings.media_root)
    return sorted(p.name for p in root.iterdir()) if root.exists() else []


@pytest.mark.anyio
async def test_upload_png_is_stored(client, alice):
    resp = await client.post(
        "/api/upload-image",
        files={"image": ("map.png", PNG_BYTES, "image/png")},
        headers=alice,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] == 1
    assert body["file"]["url"].startswith("/media/")
    assert body["file"]["url"].endswith(".png")
    assert len(_stored_files()) == 1
    assert (Path(settings_module.settings.media_root) / _stored_files()[0]).read_bytes() == PNG_BYTES


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("filename", "content_type"),
    [("notes.txt", "text/plain"), ("evil.png", "text/html"), ("photo.bmp", "image/bmp"), ("map", "image/png")],
)
async def test_non_images_are_rejected_before_storage(client, alice, filename, content_type):
    resp = await client.post(
        "/api/upload-image",
        files={"image": (filename, b"not an image", content_type)},
        headers=alice,
    )
    assert resp.status_code == 400
    assert resp.json()["success"] == 0
    assert _stored_files() == []


@pytest.mark.anyio
async def test_oversized_upload_is_rejected(client, alice, monkeypatch):
    monkeypatch.setattr(settings_module.settings, "upload_max_bytes", 16)
    resp = await client.post(
        "/api/upload-image",
        files={"image": ("big.png", PNG_BYTES, "image/png")},
        headers=alice,
    )
    assert resp.status_code == 413
    assert _stored_files() == []


@pytest.mark.anyio
async def test_upload_without_file(client, alice):
    resp = await client.post("/api/upload-image", headers=alice)
    assert resp.status_code == 400
    assert resp.json() == {"success": 0, "message": "No file uploaded"}


@pytest.mark.anyio
async def test_upload_requires_authentication(client):
    resp = await client.post("/api/upload-image", files={"image": ("map.png", PNG_BYTES, "image/png")})
    assert resp.status_code == 401
    assert _stored_files() == []


@pytest.mark.anyio
async def test_upload_by_url_echoes_url(client, alice):
    resp = await client.post("/api/upload-image-by-url", json={"url": "https://cdn.example.com/a.png"}, headers=alice)
    assert resp.json() == {"success": 1, "file": {"url": "https://cdn.example.com/a.png"}}

    resp = await client.post("/api/upload-image-by-url", json={}, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["message"] == "No URL provided"


async def _upload(client, headers, name="a.png"):
    resp = await client.post("/api/upload-image", files={"image": (name, PNG_BYTES, "image/png")}, headers=headers)
    return resp.json()["file"]["url"]


async def _character_with_image(client, headers, url, name="Aria"):
    project_id = (await client.post("/api/projects", json={"name": "p"}, headers=headers)).json()["project_id"]
    return (
        await client.post(
            "/api/characters",
            json={"project_id": project_id, "name": name, "image_url": url},
            headers=headers,
        )
    ).json()


@pytest.mark.anyio
async def test_delete_image(client, alice):
    url = (
        await client.post("/api/upload-image", files={"image": ("a.webp", PNG_BYTES, "image/webp")}, headers=alice)
    ).json()["file"]["url"]
    await _character_with_image(client, alice, url)

    resp = await client.request("DELETE", "/api/delete-image", json={"url": url}, headers=alice)
    assert resp.json() == {"deleted": True}
    assert _stored_files() == []

    resp = await client.request("DELETE", "/api/delete-image", json={"url": url}, headers=alice)
    assert resp.json() == {"deleted": False}


@pytest.mark.anyio
async def test_unreferenced_image_is_not_deleted(client, alice):
    url = await _upload(client, alice)

    resp = await client.request("DELETE", "/api/delete-image", json={"url": url}, headers=alice)
    assert resp.json() == {"deleted": False}
    assert len(_stored_files()) == 1


@pytest.mark.anyio
async def test_cannot_delete_another_users_image(client, alice, bob):
    url = await _upload(client, alice)
    await _character_with_image(client, alice, url)

    resp = await client.request("DELETE", "/api/delete-image", json={"url": url}, headers=bob)
    assert resp.status_code == 200
    assert resp.json() == {"deleted": False}
    assert len(_stored_files()) == 1

    # Referencing it from bob's own world does not grant ownership either.
    await _character_with_image(client, bob, url, name="Thief")
    resp = await client.request("DELETE", "/api/delete-image", json={"url": url}, headers=bob)
    assert resp.json() == {"deleted": False}
    assert len(_stored_files()) == 1


@pytest.mark.anyio
async def test_cleanup_keeps_images_still_referenced_elsewhere(client, alice, bob):
    url = await _upload(client, alice)
    await _character_with_image(client, alice, url)
    thief = await _character_with_image(client, bob, url, name="Thief")

    await client.patch(f"/api/characters/{thief['character_id']}", json={"image_url": None}, headers=bob)
    assert len(_stored_files()) == 1

    await client.delete(f"/api/characters/{thief['character_id']}", headers=bob)
    assert len(_stored_files()) == 1


@pytest.mark.anyio
async def test_replacing_character_image_cleans_up_old_file(client, alice):
    project_id = (await client.post("/api/projects", json={"name": "p"}, headers=alice)).json()["project_id"]
    urls = [
        (
            await client.post(
                "/api/upload-image", files={"image": (f"{n}.png", PNG_BYTES, "image/png")}, headers=alice
            )
        ).json()["file"]["url"]
        for n in ("old", "new")
    ]
    character = (
        await client.post(
            "/api/characters",
            json={"project_id": project_id, "name": "Aria", "image_url": urls[0]},
            headers=alice,
        )
    ).json()

    await client.patch(f"/api/characters/{character['character_id']}", json={"image_url": urls[1]}, headers=alice)
    assert _stored_files() == [urls[1].rsplit("/", 1)[1]]

    await client.delete(f"/api/characters/{character['character_id']}", headers=alice)
    assert _stored_files() == []


@pytest.mark.anyio
async def test_removed_content_images_are_cleaned_up(client, alice):
    project_id = (await client.post("/api/projects", json={"name": "p"}, headers=alice)).json()["project_id"]
    url = (
        await client.post("/api/upload-image", files={"image": ("m.png", PNG_BYTES, "image/png")}, headers=alice)
    ).json()["file"]["url"]
    content = json.dumps({"blocks": [{"type": "image", "data": {"file": {"url": url}}}]})
    lore = (
        await client.post("/api/lore", json={"project_id": project_id, "title": "Maps", "content": content}, headers=alice)
    ).json()
    assert len(_stored_files()) == 1

    await client.patch(f"/api/lore/{lore['lore_id']}", json={"content": "text only now"}, headers=alice)
    assert _stored_files() == []


class TestValidateImageUpload:
    @pytest.mark.parametrize(
        ("filename", "content_type"),
        [("a.jpg", "image/jpeg"), ("a.JPEG", "image/jpeg"), ("a.gif", "image/gif"), ("a.webp", "image/webp")],
    )
    def test_accepts_images(self, filename, content_type):
        validate_image_upload(filename, content_type, 10, 100)

    def test_rejects_mismatched_mime(self):
        with pytest.raises(UploadRejectedError) as exc:
            validate_image_upload("a.png", "application/pdf", 10, 100)
        assert exc.value.status_code == 400

    def test_size_limit(self):
        with pytest.raises(UploadRejectedError) as exc:
            validate_image_upload("a.png", "image/png", 101, 100)
        assert exc.value.status_code == 413


class TestLocalMediaStore:
    def test_ignores_foreign_and_traversal_urls(self, tmp_path):
        store = LocalMediaStore(str(tmp_path / "media"), "/media")
        secret = tmp_path / "secret.txt"
        secret.write_text("keep")

        assert store.delete_image("https://elsewhere.example.com/a.png") is False
        assert store.delete_image("/media/../secret.txt") is False
        assert secret.exists()


class TestObjectStorageMediaStore:
    def test_object_path_from_public_url(self):
        store = ObjectStorageMediaStore("https://proj.supabase.co", "key", "images")
        url = "https://proj.supabase.co/storage/v1/object/public/images/uploads/a.png"
        assert store.object_path(url) == "uploads/a.png"
        assert store.object_path("https://proj.supabase.co/storage/v1/object/public/other/a.png") is None

    def test_delete_sends_prefixes(self, monkeypatch):
        calls = []

        def fake_request(method, url, **kwargs):
            calls.append((method, url, kwargs["json"]))
            return httpx.Response(200, request=httpx.Request(method, url))

        monkeypatch.setattr(httpx, "request", fake_request)
        store = ObjectStorageMediaStore("https://proj.supabase.co/", "key", "images")

        assert store.delete_image(store.public_url("uploads/a.png")) is True
        assert calls == [
            ("DELETE", "https://proj.supabase.co/storage/v1/object/images", {"prefixes": ["uploads/a.png"]})
        ]

    def test_upload_posts_to_bucket(self, monkeypatch):
        calls = []

        def fake_post(url, **kwargs):
            calls.append((url, kwargs["content"], kwargs["headers"]["Content-Type"]))
            return httpx.Response(200, request=httpx.Request("POST", url))

        monkeypatch.setattr(httpx, "post", fake_post)
        store = ObjectStorageMediaStore("https://proj.supabase.co", "key", "images")

        object_path, url = store.save_image_bytes(PNG_BYTES, "image/png")
        assert object_path.startswith("uploads/") and object_path.endswith(".png")
        assert url == store.public_url(object_path)
        assert calls == [(f"https://proj.supabase.co/storage/v1/object/images/{object_path}", PNG_BYTES, "image/png")]


def test_upload_route_runs_on_the_threadpool():
    assert not inspect.iscoroutinefunction(upload_image)


@pytest.mark.anyio
async def test_upload_to_object_backend(client, alice, monkeypatch):
    posted = []

    def fake_post(url, **kwargs):
        posted.append(url)
        return httpx.Response(200, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx, "post", fake_post)
    monkeypatch.setattr(settings_module.settings, "media_backend", "object")
    monkeypatch.setattr(settings_module.settings, "object_storage_url", "https://proj.supabase.co")
    monkeypatch.setattr(settings_module.settings, "object_storage_api_key", "key")

    resp = await client.post("/api/upload-image", files={"image": ("map.png", PNG_BYTES, "image/png")}, headers=alice)
    assert resp.status_code == 200
    assert resp.json()["file"]["url"].startswith("https://proj.supabase.co/storage/v1/object/public/images/uploads/")
    assert len(posted) == 1
    assert _stored_files() == []


class TestMediaConfiguration:
    def test_object_backend_requires_credentials(self, monkeypatch):
        monkeypatch.setattr(settings_module.settings, "media_backend", "object")
        monkeypatch.setattr(settings_module.settings, "object_storage_url", None)
        with pytest.raises(ConfigurationError):
            get_media_store()

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setattr(settings_module.settings, "media_backend", "ftp")
        with pytest.raises(ConfigurationError, match="ftp"):
            get_media_store()

    def test_local_backend(self):
        assert isinstance(get_media_store(), LocalMediaStore)
