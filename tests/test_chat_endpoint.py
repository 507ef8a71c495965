"""Integration tests for the chat API endpoints."""
import asyncio
import time
import httpx
import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock, patch
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))


@pytest.fixture
def client():
    """Create a test client with a fresh store and mocked upstream services."""
    # Import after path is set
    from main import app
    import main
    from services.conversation_store import ConversationStore
    from services.llm_client import LLMResponse
    from services.orchestrator import ChatOrchestrator
    from models.catalog import TableColumn, TableDescriptor

    # Mock the startup event to avoid initializing real services
    with patch('main.startup_event'):
        client = TestClient(app)

        main.conversation_store = ConversationStore()
        main.llm_client = Mock()
        main.query_executor = Mock()

        def generate(prompt, **kwargs):
            if "system_instruction" in kwargs:
                return LLMResponse(
                    text="```sql\nSELECT SUM(total_sale) AS total_sales FROM `p.d.monthly_sales`\n```",
                    tokens_input=100, tokens_output=20, latency_ms=5, model_used="gemini-test"
                )
            return LLMResponse(
                text="You sold 45,230.", tokens_input=50, tokens_output=8, latency_ms=5, model_used="gemini-test"
            )

        main.llm_client.generate.side_effect = generate
        main.query_executor.run.return_value = [{"total_sales": 45230}]

        main.orchestrator = ChatOrchestrator(
            store=main.conversation_store,
            llm_client=main.llm_client,
            query_executor=main.query_executor,
            catalog=[TableDescriptor("d", "monthly_sales", (TableColumn("total_sale", "NUMERIC"),))],
            agent_name="DataBot",
            project_id="p"
        )

        yield client


def test_health(client):
    """Test liveness endpoints."""
    assert client.get("/").status_code == 200
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_chat_basic(client):
    """Test a chat round trip with an explicit conversation id."""
    response = client.post(
        "/chat",
        json={"message": {"text": "How much did we sell last month?"}, "conversationId": "conv_a"}
    )

    assert response.status_code == 200
    assert response.json() == {"text": "You sold 45,230.", "conversationId": "conv_a"}


def test_chat_default_conversation_id(client):
    """Test that omitting conversationId uses and returns 'default'."""
    response = client.post("/chat", json={"message": {"text": "How much?"}})

    assert response.status_code == 200
    assert response.json()["conversationId"] == "default"


def test_default_conversation_is_shared(client):
    """Test that two callers omitting conversationId share one history."""
    client.post("/chat", json={"message": {"text": "First caller"}})
    client.post("/chat", json={"message": {"text": "Second caller"}})

    data = client.get("/getConversationHistory").json()

    assert data["conversationId"] == "default"
    assert data["messageCount"] == 4
    user_turns = [turn["content"] for turn in data["history"] if turn["role"] == "user"]
    assert user_turns == ["First caller", "Second caller"]


def test_chat_empty_text(client):
    """Test that blank text is rejected with 400."""
    response = client.post("/chat", json={"message": {"text": "   "}})

    assert response.status_code == 400
    assert response.json()["detail"]["error"]["code"] == "INVALID_REQUEST"


def test_chat_missing_message(client):
    """Test that a body without message fails validation."""
    response = client.post("/chat", json={"conversationId": "conv_a"})

    # Pydantic validation returns 422 for validation errors
    assert response.status_code == 422


def test_chat_warehouse_failure(client):
    """Test that a query failure returns 502 and leaves only the user turn."""
    import main
    from services.query_executor import QueryError, QueryExecutorError

    main.query_executor.run.side_effect = QueryExecutorError(
        QueryError(code="INVALID_QUERY", message="BigQuery error: 400 Syntax error", details={"sql": "SELECT"})
    )

    response = client.post("/chat", json={"message": {"text": "Bad question"}, "conversationId": "conv_b"})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["error"]["code"] == "INVALID_QUERY"
    assert "Syntax error" in detail["text"]

    history = client.get("/getConversationHistory", params={"conversationId": "conv_b"}).json()
    assert [turn["role"] for turn in history["history"]] == ["user"]


def test_chat_generation_failure(client):
    """Test that a model failure returns 502 with the structured error."""
    import main
    from services.llm_client import LLMError, LLMClientError

    main.llm_client.generate.side_effect = LLMClientError(
        LLMError(code="RATE_LIMIT_ERROR", message="Rate limit exceeded.", details={"retry_after": 60})
    )

    response = client.post("/chat", json={"message": {"text": "Question"}})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["error"]["code"] == "RATE_LIMIT_ERROR"
    assert detail["error"]["details"]["retry_after"] == 60


def test_chat_unexpected_failure(client):
    """Test that unexpected errors return a generic 500."""
    import main

    main.query_executor.run.side_effect = RuntimeError("kaboom")

    response = client.post("/chat", json={"message": {"text": "Question"}})

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["error"]["code"] == "INTERNAL_ERROR"
    assert "kaboom" not in detail["text"]


def test_get_history(client):
    """Test reading a conversation's history."""
    client.post("/chat", json={"message": {"text": "How much?"}, "conversationId": "conv_c"})

    response = client.get("/getConversationHistory", params={"conversationId": "conv_c"})

    assert response.status_code == 200
    data = response.json()
    assert data["conversationId"] == "conv_c"
    assert data["messageCount"] == 2
    assert [turn["role"] for turn in data["history"]] == ["user", "assistant"]
    assert data["history"][0]["content"] == "How much?"
    assert "timestamp" in data["history"][0]


def test_get_history_unknown_id(client):
    """Test that an unknown id has an empty history."""
    data = client.get("/getConversationHistory", params={"conversationId": "nobody"}).json()

    assert data == {"conversationId": "nobody", "history": [], "messageCount": 0}


def test_clear_conversation(client):
    """Test clearing a conversation, twice."""
    client.post("/chat", json={"message": {"text": "How much?"}, "conversationId": "conv_d"})

    for _ in range(2):
        response = client.post("/clearConversation", json={"conversationId": "conv_d"})
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Conversation history cleared for ID: conv_d",
            "conversationId": "conv_d",
        }

    data = client.get("/getConversationHistory", params={"conversationId": "conv_d"}).json()
    assert data["messageCount"] == 0


def test_clear_default_conversation(client):
    """Test that clear without an id targets 'default'."""
    client.post("/chat", json={"message": {"text": "How much?"}})

    response = client.post("/clearConversation", json={})

    assert response.json()["conversationId"] == "default"
    assert client.get("/getConversationHistory").json()["messageCount"] == 0


def test_clear_conversation_without_body(client):
    """Test that clear with no body at all targets 'default'."""
    client.post("/chat", json={"message": {"text": "How much?"}})

    response = client.post("/clearConversation")

    assert response.status_code == 200
    assert response.json()["conversationId"] == "default"
    assert client.get("/getConversationHistory").json()["messageCount"] == 0


def test_health_answers_while_chat_in_flight(client):
    """Test that a slow chat pipeline does not block other requests."""
    import main

    answer = main.llm_client.generate.side_effect

    def slow_generate(prompt, **kwargs):
        time.sleep(1.0)
        return answer(prompt, **kwargs)

    main.llm_client.generate.side_effect = slow_generate

    async def scenario():
        transport = httpx.ASGITransport(app=main.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            chat = asyncio.create_task(
                http.post("/chat", json={"message": {"text": "Slow question"}})
            )
            await asyncio.sleep(0.1)
            started = time.monotonic()
            health = await http.get("/health")
            health_seconds = time.monotonic() - started
            chat_response = await chat
        return health, health_seconds, chat_response

    health, health_seconds, chat_response = asyncio.run(scenario())

    assert health.status_code == 200
    assert health_seconds < 0.5
    assert chat_response.status_code == 200
    assert chat_response.json()["text"] == "You sold 45,230."

def test_list_conversations(client):
    """Test listing conversation ids."""
    client.post("/chat", json={"message": {"text": "A"}, "conversationId": "conv_e"})
    client.post("/chat", json={"message": {"text": "B"}, "conversationId": "conv_f"})

    data = client.get("/conversations").json()

    assert sorted(data["conversationIds"]) == ["conv_e", "conv_f"]
    assert data["count"] == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
