"""Request orchestration for the chat pipeline."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from models.catalog import TableDescriptor
from models.conversation import USER_ROLE, ASSISTANT_ROLE
from services.conversation_store import ConversationStore
from services.llm_client import LLMClient
from services.prompt_builder import build_sql_prompt, build_system_prompt, build_narration_prompt
from services.query_executor import QueryExecutor
from services.sql_extraction import extract_sql

logger = logging.getLogger(__name__)


class SQLGenerationError(Exception):
    """Raised when the model reply contains no usable SQL."""

    def __init__(self, message: str, model_reply: str):
        self.model_reply = model_reply
        super().__init__(message)


@dataclass
class ChatResult:
    """Outcome of one processed message."""
    text: str
    conversation_id: str
    sql: str
    row_count: int


class ChatOrchestrator:
    """
    Runs one question through the pipeline:

    record user turn -> build SQL prompt -> generate SQL -> run query ->
    narrate and record assistant turn.

    A failure at any step aborts the rest. The user turn recorded in the
    first step stays in history.
    """

    def __init__(
        self,
        store: ConversationStore,
        llm_client: LLMClient,
        query_executor: QueryExecutor,
        catalog: Sequence[TableDescriptor],
        agent_name: str,
        project_id: str,
        sql_temperature: float = 0.2,
        sql_max_output_tokens: int = 1024
    ):
        self.store = store
        self.llm_client = llm_client
        self.query_executor = query_executor
        self.catalog = list(catalog)
        self.agent_name = agent_name
        self.project_id = project_id
        self.sql_temperature = sql_temperature
        self.sql_max_output_tokens = sql_max_output_tokens
        self.system_prompt = build_system_prompt(agent_name)

    def process_message(self, message_text: str, conversation_id: str) -> ChatResult:
        """
        Answer a question within a conversation.

        Args:
            message_text: The user's question
            conversation_id: Conversation the question belongs to

        Returns:
            ChatResult with the narrated answer and the SQL that produced it

        Raises:
            LLMClientError: If either model call fails
            SQLGenerationError: If the model reply has no SQL
            QueryExecutorError: If the warehouse query fails
        """
        logger.info(f"Message received: {message_text[:100]}")
        logger.info(f"Conversation ID: {conversation_id}")

        self.store.append(conversation_id, USER_ROLE, message_text)

        history = self.store.get(conversation_id)
        prompt = build_sql_prompt(
            question=message_text,
            history=history,
            catalog=self.catalog,
            agent_name=self.agent_name,
            project_id=self.project_id
        )

        sql = self.generate_sql(prompt)
        logger.info(f"Generated SQL: {sql}")

        rows = self.query_executor.run(sql)

        answer = self.narrate(message_text, rows)
        self.store.append(conversation_id, ASSISTANT_ROLE, answer)

        return ChatResult(
            text=answer,
            conversation_id=conversation_id,
            sql=sql,
            row_count=len(rows)
        )

    def generate_sql(self, prompt: str) -> str:
        """Ask the model for SQL and extract it from the reply."""
        response = self.llm_client.generate(
            prompt=prompt,
            system_instruction=self.system_prompt,
            temperature=self.sql_temperature,
            max_output_tokens=self.sql_max_output_tokens
        )
        logger.debug(f"Raw model response: {response.text}")

        sql = extract_sql(response.text)
        if not sql:
            raise SQLGenerationError("The model did not return a SQL query.", response.text)
        return sql

    def narrate(self, question: str, rows: List[Dict[str, Any]]) -> str:
        """Turn query rows into a natural-language answer. The reply is returned as-is."""
        prompt = build_narration_prompt(question, rows, self.agent_name)
        response = self.llm_client.generate(prompt=prompt)
        return response.text
