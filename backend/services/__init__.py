"""Services for the BigQuery chat assistant."""
from .schema_catalog import load_table_schemas, parse_table_schemas
from .conversation_store import ConversationStore
from .prompt_builder import build_system_prompt, build_sql_prompt, build_narration_prompt, serialize_rows
from .sql_extraction import extract_sql
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError
from .query_executor import QueryExecutor, QueryError, QueryExecutorError
from .orchestrator import ChatOrchestrator, ChatResult, SQLGenerationError

__all__ = ['load_table_schemas', 'parse_table_schemas', 'ConversationStore', 'build_system_prompt', 'build_sql_prompt', 'build_narration_prompt', 'serialize_rows', 'extract_sql', 'LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError', 'QueryExecutor', 'QueryError', 'QueryExecutorError', 'ChatOrchestrator', 'ChatResult', 'SQLGenerationError']
