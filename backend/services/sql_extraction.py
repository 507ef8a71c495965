"""Extraction of SQL from free-text model replies."""
import re
from typing import Optional

# A fenced block tagged ``sql`` (any case); the body runs to the next fence.
SQL_BLOCK_PATTERN = re.compile(r"```sql[ \t]*\r?\n(.*?)```", re.IGNORECASE | re.DOTALL)


def extract_sql(model_reply: Optional[str]) -> str:
    """
    Pull the SQL query out of a model reply.

    Returns the trimmed body of the first ```sql fenced block. Replies without
    such a block are assumed to be bare SQL and returned trimmed as a whole.
    """
    if not model_reply:
        return ""

    match = SQL_BLOCK_PATTERN.search(model_reply)
    if match:
        return match.group(1).strip()
    return model_reply.strip()
