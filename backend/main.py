"""Main entry point for the BigQuery chat assistant API."""
import logging
from typing import List, Optional
from fastapi import FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from config import (
    PORT,
    LOG_LEVEL,
    LOG_FORMAT,
    CORS_ORIGINS,
    PROJECT_ID,
    AGENT_NAME,
    TABLE_SCHEMA_PATH,
    DEFAULT_CONVERSATION_ID,
    MAX_HISTORY_MESSAGES,
    SQL_TEMPERATURE,
    SQL_MAX_OUTPUT_TOKENS,
)
from logger import setup_logging
from models.api import (
    ChatRequest,
    ChatResponse,
    ClearConversationRequest,
    ClearConversationResponse,
    ConversationHistoryResponse,
    ConversationListResponse,
    ErrorDetail,
    TurnModel,
)
from models.catalog import TableDescriptor
from services.conversation_store import ConversationStore
from services.llm_client import LLMClient, LLMClientError
from services.orchestrator import ChatOrchestrator, SQLGenerationError
from services.query_executor import QueryExecutor, QueryExecutorError
from services.schema_catalog import load_table_schemas

# Initialize logging
if LOG_FORMAT == "json":
    setup_logging(LOG_LEVEL)

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="BigQuery Chat Assistant",
    description="Answers natural-language questions by generating and running BigQuery SQL",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services (will be done on startup)
table_schemas: List[TableDescriptor] = []
conversation_store: ConversationStore = ConversationStore(max_messages=MAX_HISTORY_MESSAGES)
llm_client: LLMClient = None
query_executor: QueryExecutor = None
orchestrator: ChatOrchestrator = None


@app.on_event("startup")
async def startup_event():
    """Load table schemas and initialize services on startup."""
    global table_schemas, llm_client, query_executor, orchestrator

    logger.info("Initializing BigQuery chat assistant services...")

    try:
        table_schemas = load_table_schemas(TABLE_SCHEMA_PATH)

        llm_client = LLMClient()
        logger.info("Initialized LLMClient")

        query_executor = QueryExecutor()
        logger.info("Initialized QueryExecutor")

        orchestrator = ChatOrchestrator(
            store=conversation_store,
            llm_client=llm_client,
            query_executor=query_executor,
            catalog=table_schemas,
            agent_name=AGENT_NAME,
            project_id=PROJECT_ID,
            sql_temperature=SQL_TEMPERATURE,
            sql_max_output_tokens=SQL_MAX_OUTPUT_TOKENS
        )
        logger.info("Initialized ChatOrchestrator")

        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


def _error_detail(text: str, code: str, message: str, details: Optional[dict] = None) -> dict:
    """Build the structured body carried by error responses."""
    return {
        "text": text,
        "error": ErrorDetail(code=code, message=message, details=details or {}).model_dump()
    }


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "BigQuery Chat Assistant API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "bigquery-chat-assistant",
        "version": "1.0.0",
        "tables_loaded": len(table_schemas)
    }


@app.post("/chat", response_model=ChatResponse)
async def chat_endpoint(request: ChatRequest) -> ChatResponse:
    """
    Answer a natural-language question about the warehouse data.

    Omitting ``conversationId`` uses the shared ``"default"`` conversation.

    Args:
        request: ChatRequest with message text and optional conversationId

    Returns:
        ChatResponse with the narrated answer and conversationId

    Raises:
        HTTPException: 400 for a blank message, 502 for upstream failures,
            500 for anything unexpected
    """
    conversation_id = request.conversation_id or DEFAULT_CONVERSATION_ID

    try:
        if not request.message.text or not request.message.text.strip():
            raise HTTPException(
                status_code=400,
                detail=_error_detail(
                    "Message text is required and cannot be empty",
                    "INVALID_REQUEST",
                    "message.text is empty"
                )
            )

        # Model and warehouse clients block; keep them off the event loop
        result = await run_in_threadpool(
            orchestrator.process_message, request.message.text, conversation_id
        )

        logger.info(f"Answered conversation {conversation_id} from {result.row_count} rows")
        return ChatResponse(text=result.text, conversation_id=conversation_id)

    except HTTPException:
        # Re-raise HTTP exceptions
        raise
    except LLMClientError as e:
        logger.error(f"LLM client error: {e.error.message}")
        raise HTTPException(
            status_code=502,
            detail=_error_detail(
                f"An error occurred while processing your request: {e.error.message}",
                e.error.code,
                e.error.message,
                e.error.details
            )
        )
    except SQLGenerationError as e:
        logger.error(f"SQL generation error: {e}")
        raise HTTPException(
            status_code=502,
            detail=_error_detail(
                f"An error occurred while processing your request: {e}",
                "SQL_GENERATION_ERROR",
                str(e),
                {"model_reply": e.model_reply}
            )
        )
    except QueryExecutorError as e:
        logger.error(f"Query execution error: {e.error.message}")
        raise HTTPException(
            status_code=502,
            detail=_error_detail(
                f"An error occurred while processing your request: {e.error.message}",
                e.error.code,
                e.error.message,
                e.error.details
            )
        )
    except Exception as e:
        logger.error(f"Unexpected error processing message: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=_error_detail(
                "An error occurred while processing your request.",
                "INTERNAL_ERROR",
                "Internal server error"
            )
        )


@app.post("/clearConversation", response_model=ClearConversationResponse)
async def clear_conversation_endpoint(
    request: Optional[ClearConversationRequest] = None
) -> ClearConversationResponse:
    """Drop the stored history of a conversation. A missing body clears 'default'."""
    conversation_id = (request.conversation_id if request else None) or DEFAULT_CONVERSATION_ID

    try:
        conversation_store.clear(conversation_id)
        return ClearConversationResponse(
            success=True,
            message=f"Conversation history cleared for ID: {conversation_id}",
            conversation_id=conversation_id
        )
    except Exception as e:
        logger.error(f"Error clearing conversation: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=_error_detail(
                f"An error occurred while clearing conversation: {e}",
                "INTERNAL_ERROR",
                str(e)
            )
        )


@app.get("/getConversationHistory", response_model=ConversationHistoryResponse)
async def get_conversation_history_endpoint(
    conversation_id: Optional[str] = Query(default=None, alias="conversationId")
) -> ConversationHistoryResponse:
    """Return the stored turns of a conversation, oldest first."""
    conversation_id = conversation_id or DEFAULT_CONVERSATION_ID

    try:
        history = conversation_store.get(conversation_id)
        return ConversationHistoryResponse(
            conversation_id=conversation_id,
            history=[
                TurnModel(role=turn.role, content=turn.content, timestamp=turn.timestamp)
                for turn in history
            ],
            message_count=len(history)
        )
    except Exception as e:
        logger.error(f"Error getting conversation history: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=_error_detail(
                f"An error occurred while getting conversation history: {e}",
                "INTERNAL_ERROR",
                str(e)
            )
        )


@app.get("/conversations", response_model=ConversationListResponse)
async def list_conversations_endpoint() -> ConversationListResponse:
    """List the ids of all conversations held in memory."""
    conversation_ids = conversation_store.list_ids()
    return ConversationListResponse(conversation_ids=conversation_ids, count=len(conversation_ids))


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting BigQuery chat assistant API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
