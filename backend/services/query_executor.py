"""BigQuery query execution."""
import concurrent.futures
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import bigquery

from config import PROJECT_ID, BIGQUERY_LOCATION

logger = logging.getLogger(__name__)


@dataclass
class QueryError:
    """Structured error from query execution."""
    code: str
    message: str
    details: Dict[str, Any]


class QueryExecutorError(Exception):
    """Raised when the warehouse rejects or fails a query."""

    def __init__(self, error: QueryError):
        self.error = error
        super().__init__(error.message)


class QueryExecutor:
    """
    Thin wrapper around the BigQuery client.

    Queries are run exactly as given: no validation, no rewriting, no retry.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        client: Optional[bigquery.Client] = None
    ):
        self.project_id = project_id or PROJECT_ID
        self.location = location or BIGQUERY_LOCATION
        self.client = client or bigquery.Client(project=self.project_id, location=self.location)
        logger.info(f"QueryExecutor initialized: project={self.project_id}, location={self.location}")

    def run(self, sql: str) -> List[Dict[str, Any]]:
        """
        Execute a query and return its rows.

        Args:
            sql: BigQuery Standard SQL

        Returns:
            One dict per row, keyed by column name

        Raises:
            QueryExecutorError: If the query fails for any reason
        """
        start_time = time.time()

        try:
            job = self.client.query(sql)
            rows = [dict(row.items()) for row in job.result()]
        except Exception as e:
            raise self._query_error(e, sql, start_time) from e

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Query returned {len(rows)} rows in {latency_ms}ms")
        return rows

    @staticmethod
    def _query_error(e: Exception, sql: str, start_time: float) -> QueryExecutorError:
        latency_ms = int((time.time() - start_time) * 1000)

        if isinstance(e, google_exceptions.BadRequest):
            code = "INVALID_QUERY"
        elif isinstance(e, (google_exceptions.Forbidden, google_exceptions.Unauthorized)):
            code = "PERMISSION_DENIED"
        elif isinstance(e, google_exceptions.NotFound):
            code = "NOT_FOUND"
        elif isinstance(e, (google_exceptions.DeadlineExceeded, concurrent.futures.TimeoutError)):
            code = "TIMEOUT_ERROR"
        elif isinstance(e, google_exceptions.GoogleAPIError):
            code = "QUERY_ERROR"
        else:
            code = "UNKNOWN_ERROR"

        error = QueryError(
            code=code,
            message=f"BigQuery error: {str(e)}",
            details={
                "sql": sql,
                "latency_ms": latency_ms,
                "original_error": str(e),
                "error_type": type(e).__name__
            }
        )
        logger.error(
            f"{code}: latency={latency_ms}ms, error={e}",
            exc_info=True,
            extra={"error_code": error.code, "error_details": error.details}
        )
        return QueryExecutorError(error)
