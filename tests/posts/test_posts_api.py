"""Tests for /api/posts/*."""

from pathlib import Path

from httpx import AsyncClient

from sportsclub.config import get_settings
from tests.conftest import auth_headers

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
MP4 = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


async def _upload(client: AsyncClient, account: dict, filename: str = "photo.png", content_type: str = "image/png", title: str | None = "Match day"):
    data = {"title": title} if title is not None else {}
    body = PNG if content_type.startswith("image/") else MP4
    return await client.post(
        "/api/posts",
        files={"media": (filename, body, content_type)},
        data=data,
        headers=auth_headers(account),
    )


class TestUpload:
    async def test_upload_image(self, client: AsyncClient, alice):
        response = await _upload(client, alice)

        assert response.status_code == 200
        post = response.json()
        assert post["userId"] == alice["id"]
        assert post["title"] == "Match day"
        assert post["mediaType"] == "image/png"
        assert post["likes"] == 0
        assert post["likedBy"] == []
        assert post["mediaUrl"].startswith("/uploads/media-")
        assert post["mediaUrl"].endswith(".png")
        stored = Path(get_settings().upload_dir) / post["mediaUrl"].removeprefix("/uploads/")
        assert stored.read_bytes() == PNG

        served = await client.get(post["mediaUrl"])
        assert served.status_code == 200
        assert served.content == PNG

    async def test_title_defaults_to_empty(self, client: AsyncClient, alice):
        response = await _upload(client, alice, title=None)
        assert response.json()["title"] == ""

    async def test_rejects_non_media(self, client: AsyncClient, alice):
        response = await _upload(client, alice, filename="notes.txt", content_type="text/plain")
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_upload"

    async def test_rejects_mismatched_mime(self, client: AsyncClient, alice):
        response = await _upload(client, alice, filename="photo.png", content_type="application/pdf")
        assert response.status_code == 400

    async def test_missing_file(self, client: AsyncClient, alice):
        response = await client.post("/api/posts", data={"title": "x"}, headers=auth_headers(alice))
        assert response.status_code == 400
        assert response.json()["detail"] == "Please upload a file"

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/posts", files={"media": ("photo.png", PNG, "image/png")})
        assert response.status_code == 401


class TestFeeds:
    async def test_feed_newest_first_with_owner(self, client: AsyncClient, alice, bob):
        first = (await _upload(client, alice, title="first")).json()
        second = (await _upload(client, bob, title="second")).json()

        feed = (await client.get("/api/posts")).json()

        assert [p["id"] for p in feed] == [second["id"], first["id"]]
        assert feed[0]["owner"]["name"] == "Bob"
        assert feed[1]["owner"]["email"] == alice["email"]

    async def test_user_feed(self, client: AsyncClient, alice, bob):
        await _upload(client, alice)
        await _upload(client, bob)

        feed = (await client.get(f"/api/posts/user/{alice['id']}")).json()

        assert len(feed) == 1
        assert feed[0]["userId"] == alice["id"]

    async def test_reels_are_videos_only(self, client: AsyncClient, alice):
        await _upload(client, alice, filename="photo.png", content_type="image/png")
        video = (await _upload(client, alice, filename="clip.mp4", content_type="video/mp4")).json()

        reels = (await client.get("/api/posts/reels")).json()

        assert [p["id"] for p in reels] == [video["id"]]

    async def test_quicktime_and_avi_reels(self, client: AsyncClient, alice):
        mov = await _upload(client, alice, filename="clip.MOV", content_type="video/quicktime")
        avi = await _upload(client, alice, filename="clip.avi", content_type="video/x-msvideo")

        assert mov.status_code == 200, mov.text
        assert avi.status_code == 200, avi.text
        assert mov.json()["mediaUrl"].endswith(".mov")

        reels = (await client.get("/api/posts/reels")).json()
        assert {p["mediaType"] for p in reels} == {"video/quicktime", "video/x-msvideo"}


class TestLikes:
    async def test_like_and_unlike(self, client: AsyncClient, alice, bob):
        post = (await _upload(client, alice)).json()

        liked = await client.put(f"/api/posts/{post['id']}/like", headers=auth_headers(bob))
        assert liked.status_code == 200
        assert liked.json() == {"likes": 1, "liked": True}

        feed = (await client.get("/api/posts")).json()
        assert feed[0]["likedBy"] == [bob["id"]]
        assert feed[0]["likes"] == 1

        unliked = await client.put(f"/api/posts/{post['id']}/unlike", headers=auth_headers(bob))
        assert unliked.json() == {"likes": 0, "liked": False}

    async def test_double_like(self, client: AsyncClient, alice):
        post = (await _upload(client, alice)).json()
        await client.put(f"/api/posts/{post['id']}/like", headers=auth_headers(alice))

        response = await client.put(f"/api/posts/{post['id']}/like", headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json() == {"detail": "Post already liked", "error": "already_liked"}

    async def test_unlike_without_like(self, client: AsyncClient, alice):
        post = (await _upload(client, alice)).json()

        response = await client.put(f"/api/posts/{post['id']}/unlike", headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json()["error"] == "not_liked"

    async def test_missing_post(self, client: AsyncClient, alice):
        response = await client.put("/api/posts/9999/like", headers=auth_headers(alice))
        assert response.status_code == 404
        assert response.json() == {"detail": "Post not found", "error": "not_found"}
