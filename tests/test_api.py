"""
HTTP tests for the API surface, driven through httpx against the ASGI app.
"""

from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from cinema_booking_platform.main import create_app
from cinema_booking_platform.utils.clock import utcnow


@pytest_asyncio.fixture
async def client(settings, database, seeded):
    app = create_app(settings, database)
    # ASGITransport does not run the lifespan
    app.state.database = database
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def _seats_url(showtime_id, suffix=""):
    return f"/api/v1/showtimes/{showtime_id}/seats{suffix}"


async def _book(client, seeded, seat_ids, promotion_code=None):
    response = await client.post(
        "/api/v1/bookings",
        json={
            "user_id": str(seeded.user_id),
            "showtime_id": str(seeded.showtime_id),
            "seat_ids": [str(seat_id) for seat_id in seat_ids],
            "promotion_code": promotion_code,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    @pytest.mark.asyncio
    async def test_root_and_health(self, client):
        root = await client.get("/")
        health = await client.get("/health")

        assert root.json()["status"] == "operational"
        assert health.json() == {
            "status": "healthy",
            "service": "cinema-booking-platform",
            "database": "healthy",
        }


class TestSeatEndpoints:
    @pytest.mark.asyncio
    async def test_availability_listing(self, client, seeded):
        response = await client.get(_seats_url(seeded.showtime_id))

        assert response.status_code == 200
        seats = response.json()
        assert len(seats) == 10
        assert {seat["status"] for seat in seats} == {"available"}

    @pytest.mark.asyncio
    async def test_hold_conflict_and_release(self, client, seeded):
        # Given
        seat_id = str(seeded.standard_seat_ids[0])
        held = await client.post(
            _seats_url(seeded.showtime_id, "/hold"),
            json={"user_id": str(seeded.user_id), "seat_ids": [seat_id], "hold_minutes": 5},
        )
        assert held.status_code == 201

        # When
        conflict = await client.post(
            _seats_url(seeded.showtime_id, "/hold"),
            json={"user_id": str(seeded.other_user_id), "seat_ids": [seat_id]},
        )
        summary = await client.get(_seats_url(seeded.showtime_id, "/summary"))
        released = await client.post(
            _seats_url(seeded.showtime_id, "/release"),
            json={"user_id": str(seeded.user_id), "seat_ids": [seat_id]},
        )
        check = await client.post(_seats_url(seeded.showtime_id, "/check"), json={"seat_ids": [seat_id]})

        # Then
        assert conflict.status_code == 409
        body = conflict.json()
        assert body["error"]["error_code"] == "SEAT_NOT_AVAILABLE"
        assert body["error"]["details"]["unavailable_seats"] == [seat_id]
        assert summary.json()["held_seats"] == 1
        assert released.json() == {"released": 1}
        assert check.json()["all_available"] is True

    @pytest.mark.asyncio
    async def test_unknown_showtime_is_404(self, client):
        response = await client.get(_seats_url(uuid4()))

        assert response.status_code == 404
        assert response.json()["error"]["error_code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_malformed_hold_request_is_422(self, client, seeded):
        response = await client.post(
            _seats_url(seeded.showtime_id, "/hold"),
            json={"user_id": str(seeded.user_id), "seat_ids": []},
        )

        assert response.status_code == 422
        assert response.json()["error"]["error_code"] == "VALIDATION_ERROR"


class TestBookingFlow:
    @pytest.mark.asyncio
    async def test_book_pay_and_validate(self, client, seeded):
        # Given
        booking = await _book(client, seeded, [seeded.standard_seat_ids[0], seeded.vip_seat_ids[0]], "SAVE10")
        booking_id = booking["booking"]["id"]
        assert booking["total_amount"] == 186300

        # When
        payment = await client.post(
            "/api/v1/payments/capture",
            json={
                "booking_id": booking_id,
                "user_id": str(seeded.user_id),
                "amount": booking["total_amount"],
                "gateway_reference": "gw-42",
            },
        )
        tickets = await client.post(f"/api/v1/tickets/generate/{booking_id}")
        qr_data = tickets.json()["tickets"][0]["qr_data"]
        validation = await client.post("/api/v1/tickets/validate", json={"qr_data": qr_data})

        # Then
        assert payment.status_code == 201, payment.text
        assert payment.json()["status"] == "completed"
        assert (await client.get(f"/api/v1/bookings/{booking_id}")).json()["status"] == "paid"
        assert validation.json()["valid"] is True

        history = await client.get(f"/api/v1/bookings/{booking_id}/history")
        assert [entry["action"] for entry in history.json()] == ["created", "paid"]

    @pytest.mark.asyncio
    async def test_double_booking_is_409(self, client, seeded):
        await _book(client, seeded, [seeded.vip_seat_ids[1]])

        response = await client.post(
            "/api/v1/bookings",
            json={
                "user_id": str(seeded.other_user_id),
                "showtime_id": str(seeded.showtime_id),
                "seat_ids": [str(seeded.vip_seat_ids[1])],
            },
        )

        assert response.status_code == 409
        assert response.json()["error"]["details"]["unavailable_seats"] == [str(seeded.vip_seat_ids[1])]

    @pytest.mark.asyncio
    async def test_cancel_and_list(self, client, seeded):
        booking = await _book(client, seeded, [seeded.standard_seat_ids[1]])
        booking_id = booking["booking"]["id"]

        forbidden = await client.post(
            f"/api/v1/bookings/{booking_id}/cancel", json={"user_id": str(seeded.other_user_id)}
        )
        cancelled = await client.post(f"/api/v1/bookings/{booking_id}/cancel", json={"user_id": str(seeded.user_id)})
        again = await client.post(f"/api/v1/bookings/{booking_id}/cancel", json={"user_id": str(seeded.user_id)})
        tickets = await client.get(f"/api/v1/bookings/{booking_id}/tickets")
        listing = await client.get(f"/api/v1/users/{seeded.user_id}/bookings", params={"status": "cancelled"})

        assert forbidden.status_code == 403
        assert cancelled.json()["success"] is True
        assert again.status_code == 409
        assert [ticket["status"] for ticket in tickets.json()] == ["cancelled"]
        assert listing.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_wrong_payment_amount_is_422(self, client, seeded):
        booking = await _book(client, seeded, [seeded.standard_seat_ids[2]])

        response = await client.post(
            "/api/v1/payments/capture",
            json={
                "booking_id": booking["booking"]["id"],
                "user_id": str(seeded.user_id),
                "amount": booking["total_amount"] + 1,
            },
        )

        assert response.status_code == 422
        assert response.json()["error"]["error_code"] == "PAYMENT_AMOUNT_MISMATCH"

    @pytest.mark.asyncio
    async def test_unknown_booking_is_404(self, client):
        response = await client.get(f"/api/v1/bookings/{uuid4()}")

        assert response.status_code == 404


class TestCatalogEndpoints:
    @pytest.mark.asyncio
    async def test_build_a_room_and_schedule_a_showtime(self, client):
        # Given
        cinema = (await client.post("/api/v1/catalog/cinemas", json={"name": "Odeon"})).json()
        seat_type = (
            await client.post("/api/v1/catalog/seat-types", json={"code": "COUPLE", "price_multiplier": 2.0})
        ).json()
        movie = (await client.post("/api/v1/catalog/movies", json={"title": "Dune", "duration_minutes": 155})).json()

        # When
        room = await client.post(
            "/api/v1/catalog/rooms",
            json={"cinema_id": cinema["id"], "name": "IMAX", "rows": ["A", "B"], "seats_per_row": 3},
        )
        start = utcnow() + timedelta(days=2)
        showtime = await client.post(
            "/api/v1/catalog/showtimes",
            json={
                "movie_id": movie["id"],
                "room_id": room.json()["id"],
                "start_time": start.isoformat(),
                "base_price": 50000,
            },
        )
        first_seat = room.json()["seats"][0]["id"]
        assigned = await client.put(
            f"/api/v1/catalog/seats/{first_seat}/seat-type", json={"seat_type_id": seat_type["id"]}
        )
        seats = await client.get(_seats_url(showtime.json()["id"]))

        # Then
        assert room.status_code == 201
        assert len(room.json()["seats"]) == 6
        assert showtime.status_code == 201
        assert showtime.json()["end_time"] is not None
        assert assigned.json()["seat_type_id"] == seat_type["id"]
        prices = {seat["seat_id"]: seat["price"] for seat in seats.json()}
        assert prices[first_seat] == 100000
        assert sorted(prices.values())[0] == 50000

    @pytest.mark.asyncio
    async def test_duplicate_user_email_is_rejected(self, client):
        payload = {"email": "carol@example.com", "full_name": "Carol"}

        first = await client.post("/api/v1/catalog/users", json=payload)
        second = await client.post("/api/v1/catalog/users", json=payload)

        assert first.status_code == 201
        assert second.status_code == 422

    @pytest.mark.asyncio
    async def test_promotion_lookup(self, client, seeded):
        found = await client.get(f"/api/v1/catalog/promotions/{seeded.promotion_code}")
        missing = await client.get("/api/v1/catalog/promotions/NOPE")

        assert found.json()["code"] == "SAVE10"
        assert missing.status_code == 404


class TestRequestLogging:
    @pytest.mark.asyncio
    async def test_request_id_and_timing_headers(self, settings, database, seeded):
        app = create_app(settings.model_copy(update={"enable_request_logging": True}), database)
        app.state.database = database

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            echoed = await client.get("/", headers={"X-Request-ID": "req-123"})
            generated = await client.get("/")

        assert echoed.headers["X-Request-ID"] == "req-123"
        assert generated.headers["X-Request-ID"]
        assert float(echoed.headers["X-Process-Time"]) >= 0
