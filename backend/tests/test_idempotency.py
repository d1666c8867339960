"""Idempotency tests for stream draws."""
import uuid

from fastapi.testclient import TestClient


CLIENT_ID = "test-client-idempotency"
HEADERS = {"X-Client-Id": CLIENT_ID}


def make_draw_request(
    op: str = "fraction", count: int = 1, client_request_id: str | None = None
) -> dict:
    """Create a valid draw request body."""
    return {
        "clientRequestId": client_request_id or str(uuid.uuid4()),
        "op": op,
        "count": count,
    }


def create_stream(client: TestClient) -> str:
    response = client.post("/streams", headers=HEADERS, json={"seeds": ["test"]})
    return response.json()["streamId"]


class TestIdempotency:
    """Retries with the same clientRequestId must not advance the stream twice."""

    def test_same_request_id_returns_identical_response(
        self, client_with_mock_redis: TestClient
    ):
        """Same clientRequestId must return identical cached response."""
        stream_id = create_stream(client_with_mock_redis)
        body = make_draw_request(count=2)

        response1 = client_with_mock_redis.post(
            f"/streams/{stream_id}/draw", headers=HEADERS, json=body
        )
        response2 = client_with_mock_redis.post(
            f"/streams/{stream_id}/draw", headers=HEADERS, json=body
        )

        assert response1.status_code == 200
        assert response2.status_code == 200
        assert response1.json() == response2.json()
        assert response1.json()["values"] == [0.5442283214069903, 0.7071346458978951]

    def test_replay_does_not_advance_stream(self, client_with_mock_redis: TestClient):
        """A replayed request leaves the stream where the original left it."""
        stream_id = create_stream(client_with_mock_redis)
        body = make_draw_request()

        for _ in range(3):
            client_with_mock_redis.post(f"/streams/{stream_id}/draw", headers=HEADERS, json=body)

        response = client_with_mock_redis.post(
            f"/streams/{stream_id}/draw", headers=HEADERS, json=make_draw_request()
        )
        assert response.json()["values"] == [0.7071346458978951]
        assert response.json()["position"] == 2

    def test_same_request_id_different_payload_conflicts(
        self, client_with_mock_redis: TestClient
    ):
        """Same clientRequestId with a different payload returns IDEMPOTENCY_CONFLICT."""
        stream_id = create_stream(client_with_mock_redis)
        request_id = str(uuid.uuid4())

        client_with_mock_redis.post(
            f"/streams/{stream_id}/draw",
            headers=HEADERS,
            json=make_draw_request(count=1, client_request_id=request_id),
        )
        response = client_with_mock_redis.post(
            f"/streams/{stream_id}/draw",
            headers=HEADERS,
            json=make_draw_request(count=2, client_request_id=request_id),
        )

        assert response.status_code == 409
        data = response.json()
        assert data["error"]["code"] == "IDEMPOTENCY_CONFLICT"
        assert data["error"]["recoverable"] is False

    def test_request_ids_scoped_per_stream(self, client_with_mock_redis: TestClient):
        """The same clientRequestId on two streams is two independent draws."""
        request_id = str(uuid.uuid4())
        first = create_stream(client_with_mock_redis)
        second = create_stream(client_with_mock_redis)

        r1 = client_with_mock_redis.post(
            f"/streams/{first}/draw",
            headers=HEADERS,
            json=make_draw_request(client_request_id=request_id),
        )
        r2 = client_with_mock_redis.post(
            f"/streams/{second}/draw",
            headers=HEADERS,
            json=make_draw_request(client_request_id=request_id),
        )
        assert r1.json()["streamId"] == first
        assert r2.json()["streamId"] == second
