# Import testing tools
from datetime import date, timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from spotbnb import models


def days_from_today(n: int) -> str:
    return str(date.today() + timedelta(days=n))


def add_booking(db_session: Session, spot, user, start_offset: int, end_offset: int):
    booking = models.Booking(
        spot_id=spot.id,
        user_id=user.id,
        start_date=date.today() + timedelta(days=start_offset),
        end_date=date.today() + timedelta(days=end_offset),
    )
    db_session.add(booking)
    db_session.commit()
    return booking


# --- Creating bookings ---

def test_create_booking_success(client: TestClient, db_session: Session, spot, guest, auth_headers):
    """Test successfully creating a booking."""
    booking_data = {"startDate": days_from_today(0), "endDate": days_from_today(5)}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 201
    data = response.json()
    assert data["spotId"] == spot.id
    assert data["userId"] == guest.id
    assert data["startDate"] == booking_data["startDate"]
    assert data["endDate"] == booking_data["endDate"]
    assert db_session.query(models.Booking).filter(models.Booking.spot_id == spot.id).count() == 1


def test_create_booking_end_not_after_start(client: TestClient, spot, guest, auth_headers):
    booking_data = {"startDate": days_from_today(3), "endDate": days_from_today(3)}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 400
    assert response.json() == {
        "message": "Bad Request",
        "errors": {"endDate": "endDate cannot be on or before startDate"},
    }


def test_create_booking_start_in_past(client: TestClient, spot, guest, auth_headers):
    booking_data = {"startDate": days_from_today(-1), "endDate": days_from_today(2)}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 400
    assert response.json()["errors"] == {"startDate": "startDate cannot be in the past"}


def test_create_booking_unparseable_dates(client: TestClient, spot, guest, auth_headers):
    booking_data = {"startDate": "not-a-date"}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 400
    assert response.json()["errors"] == {
        "startDate": "Invalid or missing startDate",
        "endDate": "Invalid or missing endDate",
    }


def test_create_booking_dates_checked_before_spot_lookup(client: TestClient, guest, auth_headers):
    booking_data = {"startDate": days_from_today(-5), "endDate": days_from_today(-1)}
    response = client.post("/spots/9999/bookings", json=booking_data, headers=auth_headers(guest))
    assert response.status_code == 400


def test_create_booking_spot_not_found(client: TestClient, guest, auth_headers):
    booking_data = {"startDate": days_from_today(1), "endDate": days_from_today(2)}
    response = client.post("/spots/9999/bookings", json=booking_data, headers=auth_headers(guest))
    assert response.status_code == 404
    assert response.json() == {"message": "Spot couldn't be found"}


def test_create_booking_own_spot(client: TestClient, spot, owner, auth_headers):
    booking_data = {"startDate": days_from_today(1), "endDate": days_from_today(2)}
    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(owner))
    assert response.status_code == 403
    assert response.json() == {"message": "Forbidden"}


def test_create_booking_no_auth(client: TestClient, spot):
    """Test creating a booking without providing an auth token."""
    booking_data = {"startDate": days_from_today(1), "endDate": days_from_today(2)}
    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data)
    assert response.status_code == 401
    assert response.json() == {"message": "Authentication required"}


def test_create_booking_invalid_token(client: TestClient, spot):
    booking_data = {"startDate": days_from_today(1), "endDate": days_from_today(2)}
    response = client.post(
        f"/spots/{spot.id}/bookings", json=booking_data, headers={"Authorization": "Bearer garbage"}
    )
    assert response.status_code == 401


def test_create_booking_start_inside_existing(client: TestClient, db_session: Session, spot, guest, make_user, auth_headers):
    """Existing [1, 10], request [5, 7]: both dates fall inside."""
    add_booking(db_session, spot, make_user(), 1, 10)
    booking_data = {"startDate": days_from_today(5), "endDate": days_from_today(7)}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 403
    assert response.json() == {
        "message": "Sorry, this spot is already booked for the specified dates",
        "errors": {
            "startDate": "Start date conflicts with an existing booking",
            "endDate": "End date conflicts with an existing booking",
        },
    }


def test_create_booking_end_inside_existing(client: TestClient, db_session: Session, spot, guest, make_user, auth_headers):
    add_booking(db_session, spot, make_user(), 5, 10)
    booking_data = {"startDate": days_from_today(2), "endDate": days_from_today(6)}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 403
    assert response.json()["errors"] == {"endDate": "End date conflicts with an existing booking"}


def test_create_booking_wrapping_existing(client: TestClient, db_session: Session, spot, guest, make_user, auth_headers):
    add_booking(db_session, spot, make_user(), 4, 6)
    booking_data = {"startDate": days_from_today(1), "endDate": days_from_today(10)}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 403
    assert set(response.json()["errors"]) == {"startDate", "endDate"}


def test_create_booking_after_existing(client: TestClient, db_session: Session, spot, guest, make_user, auth_headers):
    add_booking(db_session, spot, make_user(), 1, 4)
    booking_data = {"startDate": days_from_today(5), "endDate": days_from_today(8)}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 201


def test_create_booking_other_spot_not_affected(client: TestClient, db_session: Session, make_spot, owner, guest, make_user, auth_headers):
    booked = make_spot(owner)
    free = make_spot(owner)
    add_booking(db_session, booked, make_user(), 1, 10)
    booking_data = {"startDate": days_from_today(2), "endDate": days_from_today(4)}

    response = client.post(f"/spots/{free.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 201


# --- Listing bookings ---

def test_read_spot_bookings_as_owner(client: TestClient, db_session: Session, spot, owner, guest, auth_headers):
    booking = add_booking(db_session, spot, guest, 1, 3)

    response = client.get(f"/spots/{spot.id}/bookings", headers=auth_headers(owner))

    assert response.status_code == 200
    bookings = response.json()["Bookings"]
    assert len(bookings) == 1
    assert bookings[0]["id"] == booking.id
    assert bookings[0]["userId"] == guest.id
    assert bookings[0]["User"] == {"id": guest.id, "firstName": "Gary", "lastName": "Guest"}
    assert "createdAt" in bookings[0]


def test_read_spot_bookings_as_guest(client: TestClient, db_session: Session, spot, guest, make_user, auth_headers):
    add_booking(db_session, spot, make_user(), 1, 3)

    response = client.get(f"/spots/{spot.id}/bookings", headers=auth_headers(guest))

    assert response.status_code == 200
    assert response.json() == {
        "Bookings": [{"spotId": spot.id, "startDate": days_from_today(1), "endDate": days_from_today(3)}]
    }


def test_read_spot_bookings_not_found(client: TestClient, guest, auth_headers):
    response = client.get("/spots/9999/bookings", headers=auth_headers(guest))
    assert response.status_code == 404


def test_read_my_bookings(client: TestClient, db_session: Session, make_spot, owner, guest, make_user, auth_headers):
    """Test retrieving bookings only for the authenticated user."""
    first = make_spot(owner, name="First")
    second = make_spot(owner, name="Second")
    db_session.add(models.SpotImage(spot_id=first.id, url="https://img/first.png", preview=True))
    db_session.commit()
    add_booking(db_session, second, guest, 20, 25)
    add_booking(db_session, first, guest, 1, 5)
    add_booking(db_session, first, make_user(), 10, 12)

    response = client.get("/bookings/current", headers=auth_headers(guest))

    assert response.status_code == 200
    bookings = response.json()["Bookings"]
    assert [b["Spot"]["name"] for b in bookings] == ["First", "Second"]
    assert bookings[0]["Spot"]["previewImage"] == "https://img/first.png"
    assert bookings[1]["Spot"]["previewImage"] is None
    assert all(b["userId"] == guest.id for b in bookings)


def test_create_booking_reports_past_start_with_unparseable_end(client: TestClient, spot, guest, auth_headers):
    booking_data = {"startDate": days_from_today(-2), "endDate": "someday"}

    response = client.post(f"/spots/{spot.id}/bookings", json=booking_data, headers=auth_headers(guest))

    assert response.status_code == 400
    assert response.json() == {
        "message": "Bad Request",
        "errors": {
            "startDate": "startDate cannot be in the past",
            "endDate": "Invalid or missing endDate",
        },
    }