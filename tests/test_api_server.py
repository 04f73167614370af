from fastapi.testclient import TestClient

from voice_agent.application.api.api_server import create_app
from voice_agent.application.api.route.turn import MODEL_FAILURE_TEXT
from voice_agent.domain.context.memory.memory_store import InMemoryMemoryStore
from voice_agent.domain.models.errors import ModelCallError
from voice_agent.domain.orchestration.core.turn_coordinator import TurnCoordinator
from voice_agent.infrastructure.llm.model_client import ModelClient, ModelResponse


class StaticModelClient(ModelClient):
    def __init__(self, reply):
        self.reply = reply

    async def complete(self, system_text, messages, response_format=None, tool_definitions=None):
        if isinstance(self.reply, Exception):
            raise self.reply
        return ModelResponse(text=self.reply, model="static")


def _client(reply):
    coordinator = TurnCoordinator(StaticModelClient(reply), InMemoryMemoryStore())
    return TestClient(create_app(coordinator, configure_logging=False))


def test_turn_endpoint_returns_turn_result():
    with _client('{"action":"TALK","say":"Morning!"}') as client:
        response = client.post("/api/v1/turn", json={
            "text": "Good morning",
            "history": [{"role": "assistant", "text": "Hi there"}],
            "session_id": "kitchen",
        })

    assert response.status_code == 200
    body = response.json()
    assert body["say_text"] == "Morning!"
    assert body["tool_calls"] == []
    assert "X-Request-ID" in response.headers


def test_model_failure_maps_to_bad_gateway():
    with _client(ModelCallError("upstream timeout")) as client:
        response = client.post("/api/v1/turn", json={"text": "Hello"})

    assert response.status_code == 502
    assert response.json()["say_text"] == MODEL_FAILURE_TEXT


def test_empty_text_is_rejected():
    with _client("unused") as client:
        response = client.post("/api/v1/turn", json={"text": ""})

    assert response.status_code == 422


def test_health_lists_tools_and_producers():
    with _client("unused") as client:
        response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "show_text" in body["tools"]
    assert "cognitive_trace" in body["producers"]


def test_status_endpoint_describes_tools_and_sessions():
    with _client('{"action":"TALK","say":"Hi"}') as client:
        client.post("/api/v1/turn", json={"text": "Hello", "session_id": "hall"})
        response = client.get("/api/v1/status")

    assert response.status_code == 200
    body = response.json()
    assert any(tool["name"] == "show_text" for tool in body["tools"])
    assert body["sessions"]["hall"]["turn_count"] == 1


def test_ending_a_session_clears_it():
    with _client('{"action":"TALK","say":"Hi"}') as client:
        client.post("/api/v1/turn", json={"text": "Hello", "session_id": "hall"})
        ended = client.delete("/api/v1/sessions/hall")
        status = client.get("/api/v1/status").json()

    assert ended.json() == {"session_id": "hall", "status": "ended"}
    assert "hall" not in status["sessions"]
