"""Tests for editor endpoints."""

import base64

from fastapi.testclient import TestClient

from calorie_tracker.api.app import create_app
from calorie_tracker.domain.meals import QuickAddItem
from tests.conftest import (
    APPLE_PAYLOAD,
    FakeAiClient,
    InMemoryMealRepository,
    make_ingredient,
    make_meal,
)

HEADERS = {"X-Api-Token": "api-token"}


def _client(container) -> TestClient:
    return TestClient(create_app(container))


def _open_session(client: TestClient) -> dict[str, object]:
    image = base64.b64encode(b"\xff\xd8\xffphoto").decode()
    response = client.post(
        "/editor/sessions", json={"images": [image]}, headers=HEADERS
    )
    assert response.status_code == 201
    return response.json()


def test_health_endpoint(container) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_requests_without_token_are_rejected(container) -> None:
    client = _client(container)

    assert client.get("/editor/quick-add").status_code == 401
    response = client.get("/editor/quick-add", headers={"X-Api-Token": "wrong"})
    assert response.status_code == 401


def test_analyze_opens_session(container) -> None:
    data = _open_session(_client(container))

    session = data["session"]
    assert data["notice"] is None
    assert session["name"] == "Pasta Bolognese"
    assert session["is_new_meal"] is True
    assert session["totals"]["calories"] == 550
    assert [item["name"] for item in session["ingredients"]] == [
        "Spaghetti",
        "Beef ragu",
    ]


def test_analyze_rejects_non_food(container, ai_client: FakeAiClient) -> None:
    ai_client.payload = {"image_classification": "no_food_no_label"}
    client = _client(container)
    image = base64.b64encode(b"img").decode()

    response = client.post(
        "/editor/sessions", json={"images": [image]}, headers=HEADERS
    )

    assert response.status_code == 422
    assert len(container.editor_sessions) == 0


def test_analyze_failure_returns_friendly_error(
    container, ai_client: FakeAiClient
) -> None:
    ai_client.error = RuntimeError("upstream down")
    client = _client(container)
    image = base64.b64encode(b"img").decode()

    response = client.post(
        "/editor/sessions", json={"images": [image]}, headers=HEADERS
    )

    assert response.status_code == 502
    assert "clearer shot" in response.json()["detail"]


def test_edit_ingredients_and_save(
    container, meal_repository: InMemoryMealRepository
) -> None:
    client = _client(container)
    session_id = _open_session(client)["session_id"]

    response = client.patch(
        f"/editor/sessions/{session_id}/ingredients/0",
        json={"amount": 100},
        headers=HEADERS,
    )
    assert response.status_code == 200
    assert response.json()["session"]["totals"]["calories"] == 400

    response = client.delete(
        f"/editor/sessions/{session_id}/ingredients/1", headers=HEADERS
    )
    assert response.json()["session"]["totals"]["calories"] == 150

    response = client.post(f"/editor/sessions/{session_id}/save", headers=HEADERS)
    body = response.json()
    assert body["notice"] == {"message": "Meal saved successfully!", "level": "success"}
    assert body["session"]["is_new_meal"] is False
    assert body["session"]["image_url"].endswith(".jpg")
    stored = meal_repository.meals[body["session"]["meal_id"]]
    assert stored.total_calories == 150


def test_invalid_ingredient_index_returns_404(container) -> None:
    client = _client(container)
    session_id = _open_session(client)["session_id"]

    response = client.patch(
        f"/editor/sessions/{session_id}/ingredients/9",
        json={"amount": 10},
        headers=HEADERS,
    )

    assert response.status_code == 404


def test_search_and_confirm(container, ai_client: FakeAiClient) -> None:
    client = _client(container)
    session_id = _open_session(client)["session_id"]
    ai_client.payload = APPLE_PAYLOAD

    response = client.post(
        f"/editor/sessions/{session_id}/search",
        json={"query": "apple"},
        headers=HEADERS,
    )
    preview = response.json()["session"]["search_preview"]
    assert preview["name"] == "Apple"
    assert preview["quantity_label"] == "per 1 medium"

    response = client.post(
        f"/editor/sessions/{session_id}/search/confirm", headers=HEADERS
    )
    body = response.json()
    assert body["notice"]["message"] == "Apple added!"
    assert body["session"]["search_preview"] is None
    assert len(body["session"]["ingredients"]) == 3


def test_search_failure_is_reported_as_notice(
    container, ai_client: FakeAiClient
) -> None:
    client = _client(container)
    session_id = _open_session(client)["session_id"]
    ai_client.error = RuntimeError("quota")

    response = client.post(
        f"/editor/sessions/{session_id}/search",
        json={"query": "apple"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["notice"] == {
        "message": "Search failed: quota",
        "level": "error",
    }


def test_edit_saved_meal_and_quick_add(
    container, meal_repository: InMemoryMealRepository
) -> None:
    meal_repository.meals["meal-1"] = make_meal(make_ingredient(calories=200))
    client = _client(container)

    response = client.post("/editor/sessions/from-meal/meal-1", headers=HEADERS)
    assert response.status_code == 201
    session_id = response.json()["session_id"]
    assert response.json()["session"]["is_new_meal"] is False

    response = client.post(f"/editor/sessions/{session_id}/quick-add", headers=HEADERS)
    assert response.json()["notice"]["message"] == "Added to Quick Add!"
    assert response.json()["session"]["added_to_quick_add"] is True

    response = client.get("/editor/quick-add", headers=HEADERS)
    assert response.json()["items"][0]["calories"] == 200


def test_missing_meal_and_session_return_404(container) -> None:
    client = _client(container)

    assert (
        client.post("/editor/sessions/from-meal/nope", headers=HEADERS).status_code
        == 404
    )
    missing = "00000000-0000-0000-0000-000000000000"
    assert client.get(f"/editor/sessions/{missing}", headers=HEADERS).status_code == 404
    assert (
        client.delete(f"/editor/sessions/{missing}", headers=HEADERS).status_code
        == 404
    )


def test_discard_session(container) -> None:
    client = _client(container)
    session_id = _open_session(client)["session_id"]

    response = client.delete(f"/editor/sessions/{session_id}", headers=HEADERS)

    assert response.status_code == 204
    response = client.get(f"/editor/sessions/{session_id}", headers=HEADERS)
    assert response.status_code == 404


def test_log_quick_add_item(
    container, meal_repository: InMemoryMealRepository
) -> None:
    meal_repository.quick_adds["qa-1"] = QuickAddItem(
        id="qa-1", name="Porridge", calories=320, protein=12, carbs=50, fat=7
    )
    client = _client(container)

    response = client.post("/editor/quick-add/qa-1/log", headers=HEADERS)

    assert response.status_code == 201
    assert response.json()["name"] == "Porridge"
    assert meal_repository.quick_adds["qa-1"].usage_count == 1
    assert client.post("/editor/quick-add/nope/log", headers=HEADERS).status_code == 404


def test_export_meals_csv(container, meal_repository: InMemoryMealRepository) -> None:
    meal_repository.meals["meal-1"] = make_meal(make_ingredient(calories=200))
    client = _client(container)

    response = client.get("/editor/meals/export.csv", headers=HEADERS)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[1].endswith(",Lunch,200,3,28,0,0,0")


def test_non_finite_or_garbage_amounts_are_rejected(container) -> None:
    client = _client(container)
    session_id = _open_session(client)["session_id"]
    url = f"/editor/sessions/{session_id}/ingredients/0"

    for raw in ('{"amount": NaN}', '{"amount": Infinity}', '{"amount": "lots"}'):
        response = client.patch(
            url,
            content=raw,
            headers={**HEADERS, "Content-Type": "application/json"},
        )
        assert response.status_code == 422

    response = client.get(f"/editor/sessions/{session_id}", headers=HEADERS)
    assert response.status_code == 200
    ingredient = response.json()["session"]["ingredients"][0]
    assert ingredient["amount"] == 200
    assert ingredient["calories_label"] == "300kcal"


def test_non_finite_nutrients_from_the_model_render(
    container, ai_client: FakeAiClient
) -> None:
    ai_client.payload = {
        "dishName": "Odd plate",
        "ingredients": [{"name": "Thing", "calories": "NaN", "protein": "inf"}],
    }

    session = _open_session(_client(container))["session"]

    assert session["totals"]["calories"] == 0
    assert session["totals"]["protein"] == "0.0g"


def test_audio_opens_session(container, ai_client: FakeAiClient) -> None:
    ai_client.payload = APPLE_PAYLOAD
    client = _client(container)
    audio = base64.b64encode(b"spoken words").decode()

    response = client.post(
        "/editor/sessions/from-audio",
        json={"audio": audio, "format": "wav"},
        headers=HEADERS,
    )

    assert response.status_code == 201
    assert response.json()["session"]["name"] == "Apple"
    assert ai_client.calls[0]["audio"] == b"spoken words"
    assert ai_client.calls[0]["audio_format"] == "wav"


def test_audio_errors(container, ai_client: FakeAiClient) -> None:
    client = _client(container)

    response = client.post(
        "/editor/sessions/from-audio", json={"audio": ""}, headers=HEADERS
    )
    assert response.status_code == 422

    ai_client.error = RuntimeError("upstream down")
    audio = base64.b64encode(b"spoken words").decode()
    response = client.post(
        "/editor/sessions/from-audio", json={"audio": audio}, headers=HEADERS
    )
    assert response.status_code == 502
    assert len(container.editor_sessions) == 0
