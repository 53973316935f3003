import pytest

from app import create_app
from rail_structures.storage import MemorySnapshotStore, Snapshot
from rail_structures.trains import Train


@pytest.fixture
def app():
    store = MemorySnapshotStore(Snapshot(trains=[
        Train("T1", "Solo Shuttle", "Mumbai", "Pune", 1, 0, 100.0),
        Train("T2", "Twin Express", "Chennai", "Bangalore", 2, 0, 250.0),
    ]))
    return create_app(store=store)


@pytest.fixture
def client(app):
    return app.test_client()


def book(client, name, train_id="T1", age=30, gender="F"):
    return client.post("/api/bookings", json={
        "name": name,
        "age": age,
        "gender": gender,
        "train_id": train_id,
    })


class TestTrainAPI:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_list_all_trains(self, client):
        response = client.get("/api/trains")
        assert response.status_code == 200
        trains = response.get_json()["trains"]
        assert [t["train_id"] for t in trains] == ["T1", "T2"]
        assert trains[0]["available_seats"] == 1

    def test_search(self, client):
        response = client.get("/api/trains/search", query_string={
            "source": "  mumbai ", "destination": "PUNE",
        })
        assert response.status_code == 200
        assert [t["train_id"] for t in response.get_json()["trains"]] == ["T1"]

    def test_search_without_match_is_empty(self, client):
        response = client.get("/api/trains/search", query_string={
            "source": "Delhi", "destination": "Agra",
        })
        assert response.status_code == 200
        assert response.get_json()["trains"] == []

    def test_search_requires_both_stations(self, client):
        response = client.get("/api/trains/search", query_string={"source": "Mumbai"})
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_get_train(self, client):
        assert client.get("/api/trains/T2").get_json()["train"]["name"] == "Twin Express"
        assert client.get("/api/trains/NOPE").status_code == 404

    def test_add_train(self, client):
        response = client.post("/api/trains", json={
            "train_id": "T9", "name": "Konkan", "source": "Goa",
            "destination": "Mumbai", "total_seats": 10, "base_fare": 120,
        })
        assert response.status_code == 201
        assert response.get_json()["train"]["base_fare"] == 120.0
        assert client.get("/api/trains/T9").status_code == 200

    def test_add_duplicate_train(self, client):
        response = client.post("/api/trains", json={
            "train_id": "T1", "name": "Again", "source": "A",
            "destination": "B", "total_seats": 1, "base_fare": 1,
        })
        assert response.status_code == 409

    @pytest.mark.parametrize("payload", [
        {"name": "X", "source": "A", "destination": "B", "total_seats": 1, "base_fare": 1},
        {"train_id": "X", "name": "X", "source": "A", "destination": "B",
         "total_seats": -1, "base_fare": 1},
        {"train_id": "X", "name": "X", "source": "A", "destination": "B",
         "total_seats": "ten", "base_fare": 1},
        {"train_id": "X", "name": "X", "source": "A", "destination": "B",
         "total_seats": 1, "base_fare": -5},
    ])
    def test_add_train_validation(self, client, payload):
        assert client.post("/api/trains", json=payload).status_code == 400


class TestBookingAPI:

    def test_book_confirmed(self, client):
        response = book(client, "Asha")
        assert response.status_code == 200
        booking = response.get_json()["booking"]
        assert booking["status"] == "confirmed"
        assert booking["seat_no"] == 1
        assert booking["fare"] == 101.0
        assert len(booking["pnr"]) == 8

        lookup = client.get(f"/api/bookings/{booking['pnr']}")
        assert lookup.status_code == 200
        assert lookup.get_json()["booking"]["name"] == "Asha"

    def test_book_full_train_waitlists(self, client):
        book(client, "Asha")
        response = book(client, "Ravi")
        assert response.status_code == 200
        body = response.get_json()
        assert body["booking"]["status"] == "waitlisted"
        assert "pnr" not in body["booking"]

        waiting = client.get("/api/waiting").get_json()["waiting"]
        assert [(w["position"], w["name"], w["train_id"]) for w in waiting] == [(1, "Ravi", "T1")]

    def test_book_unknown_train(self, client):
        assert book(client, "Asha", train_id="NOPE").status_code == 404

    @pytest.mark.parametrize("payload", [
        {"age": 30, "gender": "F", "train_id": "T1"},
        {"name": "   ", "age": 30, "gender": "F", "train_id": "T1"},
        {"name": "A", "age": 0, "gender": "F", "train_id": "T1"},
        {"name": "A", "age": "old", "gender": "F", "train_id": "T1"},
        {"name": "A", "age": 30, "gender": "", "train_id": "T1"},
        {"name": "A", "age": 30, "gender": "F"},
    ])
    def test_book_validation(self, client, payload):
        response = client.post("/api/bookings", json=payload)
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_book_without_json_body(self, client):
        assert client.post("/api/bookings", data="nope").status_code == 400

    def test_cancel_promotes_waiting_passenger(self, client):
        pnr = book(client, "Asha").get_json()["booking"]["pnr"]
        book(client, "Ravi")

        response = client.delete(f"/api/bookings/{pnr}")

        assert response.status_code == 200
        promotion = response.get_json()["promotion"]
        assert promotion["status"] == "confirmed"
        assert promotion["passenger"]["name"] == "Ravi"
        assert promotion["seat_no"] == 1
        assert response.get_json()["saved"] is True
        assert client.get("/api/waiting").get_json()["waiting"] == []
        bookings = client.get("/api/bookings").get_json()["bookings"]
        assert [b["name"] for b in bookings] == ["Ravi"]

    def test_cancel_unknown_pnr(self, client):
        response = client.delete("/api/bookings/NOTAPNR1")
        assert response.status_code == 404
        assert response.get_json()["error"] == "PNR not found"

    def test_failed_save_reported_in_responses(self):
        store = MemorySnapshotStore(
            Snapshot(trains=[Train("T1", "Solo Shuttle", "Mumbai", "Pune", 1, 0, 100.0)]),
            fail_saves=True,
        )
        client = create_app(store=store).test_client()

        booked = book(client, "Asha").get_json()
        assert booked["saved"] is False

        store.fail_saves = False
        response = client.delete(f"/api/bookings/{booked['booking']['pnr']}")
        assert response.get_json()["saved"] is True

    def test_stats(self, client):
        book(client, "Asha")
        book(client, "Ravi")
        stats = client.get("/api/stats").get_json()["stats"]
        assert stats["confirmed_passengers"] == 1
        assert stats["waiting_passengers"] == 1
        assert stats["total_revenue"] == 101.0

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.get_json()["success"] is False


class TestAppFactory:

    def test_json_store_in_data_dir(self, tmp_path):
        app = create_app(data_dir=str(tmp_path))
        client = app.test_client()
        assert [t["train_id"] for t in client.get("/api/trains").get_json()["trains"]] == [
            "123A", "456B", "789C",
        ]
        assert (tmp_path / "trains.json").exists()

    def test_data_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RAILCONNECT_DATA_DIR", str(tmp_path / "env"))
        create_app()
        assert (tmp_path / "env" / "trains.json").exists()

    def test_engine_is_registered(self, app):
        assert app.extensions["reservations"].find_train("T1") is not None
