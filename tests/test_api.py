"""Tests for the client-facing gallery endpoints."""

import io
import zipfile
from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from gallery_proofing.api.app import create_app
from gallery_proofing.containers import AppContainer
from gallery_proofing.domain.galleries import Gallery, WatermarkSettings
from tests.conftest import (
    FIXED_NOW,
    FakeClock,
    FakePhotoStorage,
    InMemoryGalleryRepository,
    InMemoryPhotoRepository,
    make_gallery,
    make_photo,
)


@pytest.fixture
def client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def _public_gallery(
    repository: InMemoryGalleryRepository, **overrides: object
) -> Gallery:
    values: dict[str, object] = {"allow_public_access": True}
    values.update(overrides)
    return repository.add(make_gallery(**values))


def _open(client: TestClient, gallery: Gallery, **headers: str) -> str:
    response = client.get(f"/galleries/{gallery.id}", headers=headers)
    assert response.status_code == 200
    return response.json()["session"]["session_token"]


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_open_public_gallery_starts_session(
    client: TestClient, gallery_repository: InMemoryGalleryRepository
) -> None:
    gallery = _public_gallery(gallery_repository)

    first = client.get(f"/galleries/{gallery.id}")
    token = first.json()["session"]["session_token"]
    second = client.get(
        f"/galleries/{gallery.id}", headers={"X-Gallery-Session": token}
    )

    assert first.status_code == 200
    body = first.json()
    assert body["gallery"]["name"] == "Smith Wedding"
    assert body["is_public_access"] is True
    assert body["days_until_expiry"] == 10
    assert "public_access_token" not in body["gallery"]
    assert second.json()["session"]["id"] == body["session"]["id"]


def test_open_gallery_status_codes(
    client: TestClient, gallery_repository: InMemoryGalleryRepository
) -> None:
    private = gallery_repository.add(make_gallery())
    expired = _public_gallery(
        gallery_repository, expiry_date=FIXED_NOW - timedelta(days=1)
    )

    missing = client.get(f"/galleries/{uuid4()}")
    anonymous = client.get(f"/galleries/{private.id}")
    no_grant = client.get(
        f"/galleries/{private.id}", headers={"X-Client-Id": str(uuid4())}
    )
    gone = client.get(f"/galleries/{expired.id}")
    bad_header = client.get(f"/galleries/{private.id}", headers={"X-Client-Id": "x"})

    assert missing.status_code == 404
    assert anonymous.status_code == 401
    assert no_grant.status_code == 403
    assert no_grant.json()["detail"] == "no_grant"
    assert gone.status_code == 410
    assert bad_header.status_code == 400


def test_staff_role_header_opens_private_gallery(
    client: TestClient, gallery_repository: InMemoryGalleryRepository
) -> None:
    gallery = gallery_repository.add(make_gallery())

    response = client.get(
        f"/galleries/{gallery.id}", headers={"X-Caller-Role": "Staff"}
    )

    assert response.status_code == 200
    assert response.json()["is_public_access"] is False


def test_public_link_by_slug(
    client: TestClient, gallery_repository: InMemoryGalleryRepository
) -> None:
    gallery = _public_gallery(gallery_repository, slug="smith-wedding")

    response = client.get("/links/smith-wedding")
    unknown = client.get("/links/nobody")

    assert response.status_code == 200
    assert response.json()["gallery"]["id"] == str(gallery.id)
    assert unknown.status_code == 404


def test_list_photos_requires_session(
    client: TestClient,
    gallery_repository: InMemoryGalleryRepository,
    photo_repository: InMemoryPhotoRepository,
) -> None:
    gallery = _public_gallery(gallery_repository)
    for index in range(15):
        photo_repository.add(make_photo(gallery.album_ids[0], display_order=index))
    token = _open(client, gallery)

    without = client.get(f"/galleries/{gallery.id}/photos")
    page = client.get(
        f"/galleries/{gallery.id}/photos",
        params={"page": 2, "page_size": 12},
        headers={"X-Gallery-Session": token},
    )
    beyond = client.get(
        f"/galleries/{gallery.id}/photos",
        params={"page": 3, "page_size": 12},
        headers={"X-Gallery-Session": token},
    )

    assert without.status_code == 401
    assert page.status_code == 200
    body = page.json()
    assert body["total_count"] == 15
    assert body["total_pages"] == 2
    assert body["has_previous_page"] is True
    assert body["has_next_page"] is False
    assert len(body["photos"]) == 3
    assert "file_path" not in body["photos"][0]
    assert beyond.status_code == 400


def test_proofing_flow(
    client: TestClient,
    gallery_repository: InMemoryGalleryRepository,
    photo_repository: InMemoryPhotoRepository,
) -> None:
    gallery = _public_gallery(gallery_repository)
    favorite = photo_repository.add(make_photo(gallery.album_ids[0]))
    edit = photo_repository.add(make_photo(gallery.album_ids[0], display_order=1))
    token = _open(client, gallery)
    headers = {"X-Gallery-Session": token}

    recorded = client.post(
        f"/galleries/{gallery.id}/proofs",
        json={"photo_id": str(favorite.id), "is_favorite": True},
        headers=headers,
    )
    client.post(
        f"/galleries/{gallery.id}/proofs",
        json={
            "photo_id": str(edit.id),
            "is_marked_for_editing": True,
            "notes": "remove glare",
        },
        headers=headers,
    )
    empty = client.post(
        f"/galleries/{gallery.id}/proofs",
        json={"photo_id": str(edit.id)},
        headers=headers,
    )
    summary = client.get(f"/galleries/{gallery.id}/proofs/summary", headers=headers)
    favorites = client.get(
        f"/galleries/{gallery.id}/proofs/favorites", headers=headers
    )
    editing = client.get(f"/galleries/{gallery.id}/proofs/editing", headers=headers)

    assert recorded.status_code == 200
    assert recorded.json()["proof"]["is_favorite"] is True
    assert empty.status_code == 400
    assert summary.json() == {
        "total_photos": 2,
        "favorite_count": 1,
        "editing_count": 1,
        "reviewed_count": 2,
    }
    assert [p["photo_id"] for p in favorites.json()["proofs"]] == [str(favorite.id)]
    assert editing.json()["proofs"][0]["editing_notes"] == "remove glare"


def test_download_photo_for_granted_client(
    client: TestClient,
    container: AppContainer,
    gallery_repository: InMemoryGalleryRepository,
    photo_repository: InMemoryPhotoRepository,
    storage: FakePhotoStorage,
) -> None:
    gallery = gallery_repository.add(
        make_gallery(watermark=WatermarkSettings(enabled=True))
    )
    photo = photo_repository.add(make_photo(gallery.album_ids[0], title="Vows"))
    storage.objects[photo.file_path] = b"original"
    client_id = uuid4()
    container.access_service.grant(gallery.id, client_id, FIXED_NOW)
    token = _open(client, gallery, **{"X-Client-Id": str(client_id)})

    response = client.get(
        f"/galleries/{gallery.id}/download/{photo.id}",
        headers={"X-Gallery-Session": token},
    )

    assert response.status_code == 200
    assert response.content == b"WATERMARKED:original"
    assert response.headers["content-type"] == "image/jpeg"
    assert response.headers["content-disposition"] == (
        f'attachment; filename="{photo.id}.jpg"'
    )


def test_anonymous_download_is_unauthorized(
    client: TestClient,
    gallery_repository: InMemoryGalleryRepository,
    photo_repository: InMemoryPhotoRepository,
) -> None:
    gallery = _public_gallery(gallery_repository)
    photo = photo_repository.add(make_photo(gallery.album_ids[0]))
    token = _open(client, gallery)

    response = client.get(
        f"/galleries/{gallery.id}/download/{photo.id}",
        headers={"X-Gallery-Session": token},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "identity_required"


def test_storage_failure_maps_to_generic_error(
    client: TestClient,
    gallery_repository: InMemoryGalleryRepository,
    photo_repository: InMemoryPhotoRepository,
    storage: FakePhotoStorage,
) -> None:
    gallery = gallery_repository.add(make_gallery())
    photo = photo_repository.add(make_photo(gallery.album_ids[0]))
    storage.failing_paths.add(photo.file_path)
    token = _open(client, gallery, **{"X-Caller-Role": "staff"})

    response = client.get(
        f"/galleries/{gallery.id}/download/{photo.id}",
        headers={"X-Gallery-Session": token},
    )

    assert response.status_code == 500
    assert response.json() == {"detail": "Something went wrong"}


def test_bulk_download_returns_zip(
    client: TestClient,
    gallery_repository: InMemoryGalleryRepository,
    photo_repository: InMemoryPhotoRepository,
    storage: FakePhotoStorage,
) -> None:
    gallery = gallery_repository.add(make_gallery())
    photos = [
        photo_repository.add(
            make_photo(gallery.album_ids[0], title=f"Shot {index}", display_order=index)
        )
        for index in range(2)
    ]
    for photo in photos:
        storage.objects[photo.file_path] = photo.title.encode()
    token = _open(client, gallery, **{"X-Caller-Role": "staff"})

    response = client.post(
        f"/galleries/{gallery.id}/bulk-download",
        json={"photo_ids": [str(photo.id) for photo in photos] + [str(uuid4())]},
        headers={"X-Gallery-Session": token},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert response.headers["x-photo-count"] == "2"
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == ["001_Shot 0.jpg", "002_Shot 1.jpg"]


def test_end_session_requires_own_token(
    client: TestClient,
    gallery_repository: InMemoryGalleryRepository,
    clock: FakeClock,
) -> None:
    gallery = _public_gallery(gallery_repository)
    opened = client.get(f"/galleries/{gallery.id}").json()["session"]
    other_token = _open(client, gallery)

    forbidden = client.post(
        f"/sessions/{opened['id']}/end", headers={"X-Gallery-Session": other_token}
    )
    ended = client.post(
        f"/sessions/{opened['id']}/end",
        headers={"X-Gallery-Session": opened["session_token"]},
    )
    clock.advance(minutes=1)
    photos = client.get(
        f"/galleries/{gallery.id}/photos",
        headers={"X-Gallery-Session": opened["session_token"]},
    )

    assert forbidden.status_code == 401
    assert ended.json() == {"status": "ok"}
    assert photos.status_code == 401


def test_revoked_client_cannot_keep_browsing(
    client: TestClient,
    container: AppContainer,
    gallery_repository: InMemoryGalleryRepository,
    photo_repository: InMemoryPhotoRepository,
) -> None:
    gallery = gallery_repository.add(make_gallery())
    photo_repository.add(make_photo(gallery.album_ids[0]))
    client_id = uuid4()
    container.access_service.grant(gallery.id, client_id, FIXED_NOW)
    token = _open(client, gallery, **{"X-Client-Id": str(client_id)})
    headers = {"X-Gallery-Session": token}

    before = client.get(f"/galleries/{gallery.id}/photos", headers=headers)
    container.access_service.revoke(gallery.id, client_id)
    after = client.get(f"/galleries/{gallery.id}/photos", headers=headers)
    summary = client.get(f"/galleries/{gallery.id}/proofs/summary", headers=headers)

    assert before.status_code == 200
    assert after.status_code == 403
    assert after.json()["detail"] == "no_grant"
    assert summary.status_code == 403
