from datetime import timedelta

from conftest import png_bytes

from imgbed.db.kv import IMAGE_PREFIX
from imgbed.models.common import utcnow
from imgbed.models.image import ImageRecord


async def _seed(kv, object_store, image_id: str, folder: str = "", *, age_seconds: int = 0, with_object: bool = True):
    name = f"{image_id}.png"
    storage_key = f"{folder}/{name}" if folder else name
    record = ImageRecord(
        id=image_id,
        storage_key=storage_key,
        file_name=f"{image_id}-original.png",
        content_type="image/png",
        size=100,
        uploaded_at=utcnow() - timedelta(seconds=age_seconds),
        user_id="admin_user_01",
        upload_path=folder or None,
    )
    await kv.put(IMAGE_PREFIX + image_id, record.model_dump_json())
    if with_object:
        await object_store.put(storage_key, png_bytes(100), "image/png")
    return record


async def test_listing_partitions_images_and_directories(admin_client, kv, object_store) -> None:
    await _seed(kv, object_store, "root1", age_seconds=20)
    await _seed(kv, object_store, "root2", age_seconds=5)
    await _seed(kv, object_store, "trip1", "trips/2024")
    await _seed(kv, object_store, "work1", "work")

    resp = await admin_client.get("/api/admin/images")
    assert resp.status_code == 200
    body = resp.json()
    assert body["path"] == ""
    assert [i["id"] for i in body["images"]] == ["root2", "root1"]
    assert body["directories"] == ["trips", "work"]
    assert body["current_directory_total_size"] == 200
    assert body["images"][0]["url"] == "http://testserver/img/root2.png"

    nested = (await admin_client.get("/api/admin/images", params={"path": "/trips/"})).json()
    assert nested["path"] == "trips"
    assert nested["images"] == []
    assert nested["directories"] == ["2024"]

    leaf = (await admin_client.get("/api/admin/images", params={"path": "trips/2024"})).json()
    assert [i["id"] for i in leaf["images"]] == ["trip1"]
    assert leaf["directories"] == []


async def test_listing_requires_session(client) -> None:
    resp = await client.get("/api/admin/images")
    assert resp.status_code == 401


async def test_move_between_folders(admin_client, kv, object_store) -> None:
    await _seed(kv, object_store, "abc", "old")

    resp = await admin_client.patch("/api/admin/images", json={"image_ids": ["abc"], "target_directory": "/new/sub/"})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results["moved"] == [{"id": "abc", "new_storage_key": "new/sub/abc.png"}]

    assert "old/abc.png" not in object_store.objects
    assert "new/sub/abc.png" in object_store.objects
    record = ImageRecord.model_validate_json(kv.data[IMAGE_PREFIX + "abc"])
    assert record.storage_key == "new/sub/abc.png"
    assert record.upload_path == "new/sub"

    listing = (await admin_client.get("/api/admin/images", params={"path": "new/sub"})).json()
    assert listing["images"][0]["url"] == "http://testserver/img/abc.png"

    old_listing = (await admin_client.get("/api/admin/images", params={"path": "old"})).json()
    assert old_listing["images"] == []


async def test_move_to_root_clears_upload_path(admin_client, kv, object_store) -> None:
    await _seed(kv, object_store, "abc", "old")
    resp = await admin_client.patch("/api/admin/images", json={"image_ids": ["abc"], "target_directory": ""})
    assert resp.status_code == 200
    record = ImageRecord.model_validate_json(kv.data[IMAGE_PREFIX + "abc"])
    assert record.storage_key == "abc.png"
    assert record.upload_path is None


async def test_move_into_current_folder_is_skipped(admin_client, kv, object_store) -> None:
    await _seed(kv, object_store, "same", "pics")
    await _seed(kv, object_store, "other", "elsewhere")

    resp = await admin_client.patch(
        "/api/admin/images",
        json={"image_ids": ["same", "other"], "target_directory": "pics"},
    )
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results["skipped"] == ["same"]
    assert [m["id"] for m in results["moved"]] == ["other"]
    assert "pics/same.png" in object_store.objects


async def test_move_with_missing_object_drops_metadata(admin_client, kv, object_store) -> None:
    await _seed(kv, object_store, "ghost", "old", with_object=False)
    await _seed(kv, object_store, "real", "old")

    resp = await admin_client.patch(
        "/api/admin/images",
        json={"image_ids": ["ghost", "real"], "target_directory": "new"},
    )
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert [m["id"] for m in results["moved"]] == ["real"]
    assert results["failed"][0]["id"] == "ghost"
    assert results["failed"][0]["code"] == "not_found"
    assert IMAGE_PREFIX + "ghost" not in kv.data


async def test_move_of_unknown_ids_only_is_not_found(admin_client) -> None:
    resp = await admin_client.patch("/api/admin/images", json={"image_ids": ["nope"], "target_directory": "x"})
    assert resp.status_code == 404
    assert resp.json()["detail"]["results"]["failed"][0]["id"] == "nope"


async def test_delete_removes_object_and_metadata(admin_client, kv, object_store) -> None:
    await _seed(kv, object_store, "gone", "albums/one")
    await _seed(kv, object_store, "kept")

    resp = await admin_client.request("DELETE", "/api/admin/images", json={"image_ids": ["gone", "missing"]})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results["deleted"] == ["gone"]
    assert results["failed"] == [{"id": "missing", "reason": "Image metadata not found.", "code": "not_found"}]
    assert "albums/one/gone.png" not in object_store.objects

    listing = (await admin_client.get("/api/admin/images")).json()
    assert listing["directories"] == []
    assert [i["id"] for i in listing["images"]] == ["kept"]


async def test_delete_unknown_ids_is_not_found(admin_client) -> None:
    resp = await admin_client.request("DELETE", "/api/admin/images", json={"image_ids": ["a", "b"]})
    assert resp.status_code == 404
    assert resp.json()["detail"]["message"] == "Failed to delete any of the specified images."


async def test_delete_empty_list_is_a_no_op(admin_client) -> None:
    resp = await admin_client.request("DELETE", "/api/admin/images", json={"image_ids": []})
    assert resp.status_code == 200
    assert resp.json()["message"] == "No image IDs provided to delete."


async def test_dashboard_stats_counts_images_and_active_keys(admin_client, kv, object_store) -> None:
    await _seed(kv, object_store, "one")
    await _seed(kv, object_store, "two", "nested")
    await admin_client.post("/api/admin/apikeys", json={"name": "a"})

    resp = await admin_client.get("/api/admin/dashboard-stats")
    assert resp.status_code == 200
    assert resp.json() == {"total_image_count": 2, "active_api_key_count": 1}


async def test_backend_error_on_delete_only_fails_that_item(admin_client, kv, object_store, monkeypatch) -> None:
    await _seed(kv, object_store, "good")
    await _seed(kv, object_store, "bad")
    original_delete = object_store.delete

    async def flaky_delete(key: str) -> None:
        if key == "bad.png":
            raise RuntimeError("storage timeout")
        await original_delete(key)

    monkeypatch.setattr(object_store, "delete", flaky_delete)
    resp = await admin_client.request("DELETE", "/api/admin/images", json={"image_ids": ["bad", "good"]})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results["deleted"] == ["good"]
    assert results["failed"] == [{"id": "bad", "reason": "storage timeout", "code": "error"}]
    assert IMAGE_PREFIX + "bad" in kv.data
    assert IMAGE_PREFIX + "good" not in kv.data


async def test_backend_error_on_move_only_fails_that_item(admin_client, kv, object_store, monkeypatch) -> None:
    await _seed(kv, object_store, "good", "old")
    await _seed(kv, object_store, "bad", "old")
    original_copy = object_store.copy

    async def flaky_copy(source_key: str, target_key: str) -> None:
        if source_key == "old/bad.png":
            raise RuntimeError("storage timeout")
        await original_copy(source_key, target_key)

    monkeypatch.setattr(object_store, "copy", flaky_copy)
    resp = await admin_client.patch(
        "/api/admin/images",
        json={"image_ids": ["bad", "good"], "target_directory": "new"},
    )
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert [m["id"] for m in results["moved"]] == ["good"]
    assert results["failed"][0]["id"] == "bad"
    assert results["failed"][0]["code"] == "error"

    record = ImageRecord.model_validate_json(kv.data[IMAGE_PREFIX + "bad"])
    assert record.storage_key == "old/bad.png"
    assert "old/bad.png" in object_store.objects


async def test_backend_error_on_every_delete_is_server_error(admin_client, kv, object_store, monkeypatch) -> None:
    await _seed(kv, object_store, "only")

    async def broken_delete(key: str) -> None:
        raise RuntimeError("storage timeout")

    monkeypatch.setattr(object_store, "delete", broken_delete)
    resp = await admin_client.request("DELETE", "/api/admin/images", json={"image_ids": ["only"]})
    assert resp.status_code == 500
    assert resp.json()["detail"]["results"]["failed"][0]["code"] == "error"
