import pytest
from types import SimpleNamespace
from fastapi.testclient import TestClient

from src.domain.common import VehicleClass
from src.infrastructure.api.schemas.parking import PlateReading
from src.infrastructure.ml_agents.parking_agent import FALLBACK_ANSWER, ParkingAssistant
from src.infrastructure.ml_agents.plate_recognizer import PlateRecognizer
from src.main import create_app


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    return TestClient(app)


def _check_in(client, plate="b 1234 cd", vehicle_class="CAR"):
    return client.post("/api/parking/tickets", json={"plate": plate, "vehicle_class": vehicle_class})


class TestTicketEndpoints:

    def test_check_in(self, client):
        response = _check_in(client)

        assert response.status_code == 201
        body = response.json()
        assert body["plate"] == "B 1234 CD"
        assert body["vehicle_class"] == "CAR"
        assert body["status"] == "ACTIVE"
        assert body["fee"] is None

    def test_check_in_blank_plate(self, client):
        response = _check_in(client, plate="   ")
        assert response.status_code == 422

    def test_check_in_unknown_class(self, client):
        response = _check_in(client, vehicle_class="BUS")
        assert response.status_code == 422

    def test_check_in_when_full(self, client):
        for i in range(3):
            assert _check_in(client, plate=f"FULL{i}").status_code == 201

        response = _check_in(client, plate="ONEMORE")

        assert response.status_code == 409
        assert "full" in response.json()["detail"]

    def test_quote_then_check_out(self, client):
        ticket_id = _check_in(client, vehicle_class="MOTORCYCLE").json()["id"]

        quote = client.get(f"/api/parking/tickets/{ticket_id}/quote")
        assert quote.status_code == 200
        assert quote.json()["duration_hours"] == 1
        assert quote.json()["fee"] == 2000

        response = client.post(f"/api/parking/tickets/{ticket_id}/checkout")
        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"
        assert response.json()["fee"] == 2000

    def test_check_out_twice(self, client):
        ticket_id = _check_in(client).json()["id"]
        client.post(f"/api/parking/tickets/{ticket_id}/checkout")

        response = client.post(f"/api/parking/tickets/{ticket_id}/checkout")

        assert response.status_code == 409

    def test_check_out_unknown(self, client):
        assert client.post("/api/parking/tickets/999/checkout").status_code == 404
        assert client.get("/api/parking/tickets/999").status_code == 404
        assert client.get("/api/parking/tickets/999/quote").status_code == 404

    def test_listings_and_stats(self, client):
        first = _check_in(client, plate="FIRST").json()["id"]
        _check_in(client, plate="SECOND", vehicle_class="TRUCK")
        client.post(f"/api/parking/tickets/{first}/checkout")

        active = client.get("/api/parking/tickets/active").json()
        completed = client.get("/api/parking/tickets/completed").json()
        stats = client.get("/api/parking/stats").json()

        assert [t["plate"] for t in active] == ["SECOND"]
        assert [t["plate"] for t in completed] == ["FIRST"]
        assert client.get(f"/api/parking/tickets/{first}").json()["status"] == "COMPLETED"
        assert stats["total_spots"] == 3
        assert stats["occupied_spots"] == 1
        assert stats["available_spots"] == 2
        assert stats["today_transactions"] == 2
        assert stats["total_revenue"] == 5000
        assert stats["occupied_by_class"]["TRUCK"] == 1


class TestRecognitionEndpoint:

    def test_recognize_suggests_autofill(self, app, client, mock_llm):
        mock_llm.structured.ainvoke.return_value = PlateReading(
            license_plate="B1234CD", vehicle_type=VehicleClass.TRUCK, confidence=0.3
        )
        app.state.plate_recognizer = PlateRecognizer(llm=mock_llm, timeout=5, low_confidence_threshold=0.6)

        response = client.post("/api/parking/recognize", json={"image": "data:image/jpeg;base64,aGVsbG8="})

        assert response.status_code == 200
        suggestion = response.json()["suggestion"]
        assert suggestion["plate"] == "B1234CD"
        assert suggestion["vehicle_class"] == "TRUCK"
        assert suggestion["low_confidence"] is True
        # Recognition never creates a ticket by itself
        assert client.get("/api/parking/tickets/active").json() == []

    def test_recognize_failure_means_no_autofill(self, app, client, mock_llm):
        mock_llm.structured.ainvoke.side_effect = RuntimeError("boom")
        app.state.plate_recognizer = PlateRecognizer(llm=mock_llm, timeout=5)

        response = client.post("/api/parking/recognize", json={"image": "aGVsbG8="})

        assert response.status_code == 200
        assert response.json()["suggestion"] is None
        assert "enter manually" in response.json()["message"]

    def test_recognize_without_recognizer(self, app, client):
        app.state.plate_recognizer = None
        response = client.post("/api/parking/recognize", json={"image": "aGVsbG8="})
        assert response.json()["suggestion"] is None


class TestAssistantEndpoint:

    def test_ask(self, app, client, mock_llm):
        mock_llm.ainvoke.return_value = SimpleNamespace(content="There is 1 car parked.")
        app.state.parking_assistant = ParkingAssistant(llm=mock_llm, timeout=5)
        _check_in(client)

        response = client.post("/api/parking/assistant/ask", json={"question": "How many cars?"})

        assert response.status_code == 200
        assert response.json() == {"question": "How many cars?", "answer": "There is 1 car parked."}
        assert "B 1234 CD" in mock_llm.ainvoke.call_args.args[0]

    def test_ask_failure_falls_back(self, app, client, mock_llm):
        mock_llm.ainvoke.side_effect = RuntimeError("down")
        app.state.parking_assistant = ParkingAssistant(llm=mock_llm, timeout=5)

        response = client.post("/api/parking/assistant/ask", json={"question": "Revenue?"})

        assert response.json()["answer"] == FALLBACK_ANSWER

    def test_ask_blank_question(self, client):
        response = client.post("/api/parking/assistant/ask", json={"question": "   "})
        assert response.status_code == 422


def test_seeded_app(test_settings):
    app = create_app(test_settings.model_copy(update={"SEED_DEMO_DATA": True}))
    client = TestClient(app)

    stats = client.get("/api/parking/stats").json()

    assert stats["occupied_spots"] == 2
    assert stats["total_revenue"] == 17000


@pytest.mark.parametrize("total_spots", [0, 1])
def test_seeded_app_with_few_spots(test_settings, total_spots):
    app = create_app(test_settings.model_copy(update={"SEED_DEMO_DATA": True, "TOTAL_SPOTS": total_spots}))
    client = TestClient(app)

    stats = client.get("/api/parking/stats").json()

    assert stats["total_spots"] == total_spots
    assert stats["occupied_spots"] == total_spots
    assert stats["total_revenue"] == (17000 if total_spots else 0)
