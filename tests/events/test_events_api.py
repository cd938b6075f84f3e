"""Tests for /api/events/*."""

from pathlib import Path

from httpx import AsyncClient

from sportsclub.config import get_settings
from sportsclub.events.service import parse_event_date, prize_table
from tests.conftest import T0, auth_headers

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def _create(client: AsyncClient, account: dict, files=None, **fields):
    return await client.post("/api/events", data=fields, files=files, headers=auth_headers(account))


class TestPrizeTable:
    def test_positions(self):
        assert prize_table(["Gold", "Silver", None, "", "Ribbon"]) == {
            "1st": "Gold",
            "2nd": "Silver",
            "3rd": "",
            "4th": "",
            "5th": "Ribbon",
        }

    def test_short_list_padded(self):
        assert prize_table(["Cup"])["5th"] == ""


class TestParseEventDate:
    def test_blank_uses_default(self):
        assert parse_event_date("", T0) == T0
        assert parse_event_date(None, T0) == T0

    def test_naive_taken_as_utc(self):
        assert parse_event_date("2024-06-01T10:00:00", T0).isoformat() == "2024-06-01T10:00:00+00:00"

    def test_zulu_suffix(self):
        assert parse_event_date("2024-06-01T10:00:00Z", T0).isoformat() == "2024-06-01T10:00:00+00:00"


class TestCreateEvent:
    async def test_full_event(self, client: AsyncClient, alice):
        response = await _create(
            client,
            alice,
            files={"eventImage": ("poster.png", PNG, "image/png")},
            title="City Marathon",
            sportName="Running",
            date="2024-06-01T08:00:00Z",
            place="Riverside",
            rules="Chip timing",
            prize1="500",
            prize2="250",
        )

        assert response.status_code == 200
        event = response.json()
        assert event["title"] == "City Marathon"
        assert event["sportName"] == "Running"
        assert event["place"] == "Riverside"
        assert event["rules"] == "Chip timing"
        assert event["prizes"] == {"1st": "500", "2nd": "250", "3rd": "", "4th": "", "5th": ""}
        assert event["poster"].startswith("/uploads/eventImage-")
        assert event["viewCount"] == 0
        assert event["uploadedBy"] == {"id": alice["id"], "name": "Alice"}

    async def test_defaults(self, client: AsyncClient, alice):
        event = (await _create(client, alice)).json()

        assert event["title"] == "Untitled Event"
        assert event["rules"] == "No rules specified"
        assert event["poster"] is None
        assert event["sportName"] == ""

    async def test_invalid_date(self, client: AsyncClient, alice):
        response = await _create(client, alice, title="x", date="next tuesday")
        assert response.status_code == 400

    async def test_invalid_date_keeps_poster_off_disk(self, client: AsyncClient, alice):
        upload_dir = Path(get_settings().upload_dir)
        before = set(upload_dir.iterdir())

        response = await _create(
            client,
            alice,
            files={"eventImage": ("poster.png", PNG, "image/png")},
            title="Derby",
            date="next tuesday",
        )

        assert response.status_code == 400
        assert set(upload_dir.iterdir()) == before

    async def test_rejects_non_image_poster(self, client: AsyncClient, alice):
        response = await _create(client, alice, files={"eventImage": ("rules.txt", b"hi", "text/plain")})
        assert response.status_code == 400

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/events", data={"title": "x"})
        assert response.status_code == 401


class TestListEvents:
    async def test_all_and_by_user(self, client: AsyncClient, alice, bob):
        first = (await _create(client, alice, title="First")).json()
        second = (await _create(client, bob, title="Second")).json()

        everything = (await client.get("/api/events")).json()
        assert [e["id"] for e in everything] == [second["id"], first["id"]]

        mine = (await client.get(f"/api/events/user/{alice['id']}")).json()
        assert [e["title"] for e in mine] == ["First"]


class TestViewTracking:
    async def test_repeat_view_not_counted(self, client: AsyncClient, alice, bob):
        event = (await _create(client, alice, title="Derby")).json()
        url = f"/api/events/view/{event['id']}"

        assert (await client.post(url, headers=auth_headers(bob))).json() == {"viewCount": 1}
        assert (await client.post(url, headers=auth_headers(bob))).json() == {"viewCount": 1}
        assert (await client.post(url, headers=auth_headers(alice))).json() == {"viewCount": 2}

    async def test_missing_event(self, client: AsyncClient, alice):
        response = await client.post("/api/events/view/9999", headers=auth_headers(alice))
        assert response.status_code == 404
        assert response.json()["detail"] == "Event not found"
