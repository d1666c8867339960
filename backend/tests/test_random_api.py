"""One-shot /random endpoint tests."""
from fastapi.testclient import TestClient

from randkit.logic.models import BASE64_CHARS, HEX_CHARS, UNMISTAKABLE_CHARS
from randkit.main import app

client = TestClient(app)


class TestFraction:
    """GET /random/fraction."""

    def test_single_fraction(self):
        response = client.get("/random/fraction")
        assert response.status_code == 200
        data = response.json()
        assert data["isSecure"] is True
        assert len(data["values"]) == 1
        assert 0 <= data["values"][0] < 1

    def test_count(self):
        values = client.get("/random/fraction", params={"count": 50}).json()["values"]
        assert len(values) == 50
        assert all(0 <= v < 1 for v in values)

    def test_seeded_provider_values_exact(self, seeded_provider):
        values = client.get("/random/fraction", params={"count": 2}).json()["values"]
        assert values == [0.5442283214069903, 0.7071346458978951]


class TestStrings:
    """GET /random/hex, /random/id, /random/secret."""

    def test_hex(self):
        values = client.get("/random/hex", params={"digits": 9, "count": 3}).json()["values"]
        assert len(values) == 3
        for value in values:
            assert len(value) == 9
            assert set(value) <= set(HEX_CHARS)

    def test_hex_requires_digits(self):
        assert client.get("/random/hex").status_code == 422

    def test_id_default(self):
        value = client.get("/random/id").json()["values"][0]
        assert len(value) == 17
        assert set(value) <= set(UNMISTAKABLE_CHARS)

    def test_id_length(self):
        value = client.get("/random/id", params={"length": 30}).json()["values"][0]
        assert len(value) == 30

    def test_secret_default(self):
        value = client.get("/random/secret").json()["values"][0]
        assert len(value) == 43
        assert set(value) <= set(BASE64_CHARS)

    def test_seeded_id_exact(self, seeded_provider):
        value = client.get("/random/id").json()["values"][0]
        assert value == "ZijCQhPMuZzaCKawq"


class TestChoice:
    """POST /random/choice."""

    def test_choice_from_items(self):
        items = ["red", "green", "blue"]
        response = client.post("/random/choice", json={"items": items, "count": 20})
        assert response.status_code == 200
        assert all(v in items for v in response.json()["values"])

    def test_choice_single_item(self):
        values = client.post("/random/choice", json={"items": ["a"], "count": 5}).json()["values"]
        assert values == ["a"] * 5

    def test_choice_empty_items(self):
        response = client.post("/random/choice", json={"items": []})
        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "EMPTY_COLLECTION"
        assert data["error"]["recoverable"] is False

    def test_seeded_choice_exact(self, seeded_provider):
        response = client.post(
            "/random/choice", json={"items": ["a", "b", "c", "d", "e"], "count": 3}
        )
        assert response.json()["values"] == ["c", "d", "d"]
