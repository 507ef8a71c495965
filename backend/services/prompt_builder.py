"""Prompt templates for SQL generation and result narration."""
import base64
import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from models.catalog import TableDescriptor
from models.conversation import ConversationTurn, USER_ROLE

SQL_RULES = [
    "Return only the SQL code, without any explanations or additional text.",
    "The query must be 100% compatible with BigQuery Standard SQL.",
    "If the user's question is unclear or lacks context, generate the most generic SQL "
    "that still makes sense, selecting the most relevant table.",
    "Always limit the results to a maximum of 100 rows using `LIMIT 100` if there is "
    "no natural filter.",
    "Always include the fully qualified table name (e.g., `project.dataset.table`) in "
    "the FROM clause.",
    "Consider the conversation context when interpreting the current question. If the "
    "user refers to previous results or asks follow-up questions (for example \"that\" "
    "or \"the previous month\"), use that context to build more relevant queries.",
]

SQL_EXAMPLES = """### Examples:

#### Example 1 (using monthly_sales):

**Question:** "How much did we sell in total last month?"

**SQL Answer:**

```sql
SELECT SUM(total_sale) AS total_sales
FROM `project_id.my_dataset.monthly_sales`
WHERE EXTRACT(YEAR FROM date) = EXTRACT(YEAR FROM CURRENT_DATE())
AND EXTRACT(MONTH FROM date) = EXTRACT(MONTH FROM DATE_SUB(CURRENT_DATE(), INTERVAL 1 MONTH));
```

---

#### Example 2 (using monthly_sales):

**Question:** "Show me sales by region for this year."

**SQL Answer:**

```sql
SELECT region, SUM(total_sale) AS total_sales
FROM `project_id.my_dataset.monthly_sales`
WHERE EXTRACT(YEAR FROM date) = EXTRACT(YEAR FROM CURRENT_DATE())
GROUP BY region;
```

---

#### Example 3 (using customer_data):

**Question:** "List all customers registered in 2023."

**SQL Answer:**

```sql
SELECT customer_id, name, email
FROM `project_id.my_dataset.customer_data`
WHERE EXTRACT(YEAR FROM registration_date) = 2023
LIMIT 100;
```

---"""


def build_system_prompt(agent_name: str) -> str:
    """System instruction for the SQL drafting call."""
    return (
        f"You are a data expert assistant called {agent_name}. Your job is to convert "
        "user questions written in natural language into SQL queries for BigQuery. "
        "You must follow the rules and use the provided table schemas to generate the "
        "SQL queries. You must select the most appropriate table based on the user's "
        "question."
    )


def format_table(table: TableDescriptor, project_id: str) -> str:
    """Render one table as its fully-qualified name followed by its columns."""
    column_lines = "\n".join(f"*   {column.name} ({column.type})" for column in table.columns)
    return f"""Table: `{table.fully_qualified_name(project_id)}`

Table schema:
{column_lines}
"""


def format_history(history: Sequence[ConversationTurn]) -> str:
    """Render turns as ``User:``/``Assistant:`` lines, oldest first."""
    lines = []
    for turn in history:
        speaker = "User" if turn.role == USER_ROLE else "Assistant"
        lines.append(f"{speaker}: {turn.content}")
    return "\n".join(lines)


def build_sql_prompt(
    question: str,
    history: Sequence[ConversationTurn],
    catalog: Sequence[TableDescriptor],
    agent_name: str,
    project_id: str
) -> str:
    """
    Build the SQL drafting prompt.

    Pure function: identical inputs always produce identical text.

    Args:
        question: Current user question
        history: Conversation turns, oldest first (may be empty)
        catalog: Tables the query may use
        agent_name: Assistant display name
        project_id: Project used to fully qualify table names

    Returns:
        Complete prompt string
    """
    tables_section = "\n".join(format_table(table, project_id) for table in catalog)

    # Build conversation history section
    history_section = ""
    if history:
        history_section = f"""### Previous Conversation Context:
{format_history(history)}

---

"""

    rules_section = "\n".join(f"{number}. {rule}" for number, rule in enumerate(SQL_RULES, start=1))

    return f"""You are {agent_name}. You must use one of the following tables as the data source:

{tables_section}
{history_section}### Rules:

{rules_section}

{SQL_EXAMPLES}

Now, convert the following question into BigQuery SQL following the same format:

**Question:** "{question}"

**SQL Answer:**
"""


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


def serialize_rows(rows: List[Dict[str, Any]]) -> str:
    """Serialize query rows as compact JSON, stringifying warehouse-native types."""
    return json.dumps(rows, default=_json_default, separators=(",", ":"), ensure_ascii=False)


def build_narration_prompt(question: str, rows: List[Dict[str, Any]], agent_name: str) -> str:
    """
    Build the prompt that turns query rows into a plain-language answer.

    Args:
        question: The user's original question
        rows: Query result rows
        agent_name: Assistant display name

    Returns:
        Complete prompt string
    """
    return f"""You are {agent_name}, a data analysis assistant.

Your task is to interpret and translate the result of an SQL query executed in BigQuery into clear natural language.

You will receive two inputs:

1. The original question asked by the user in natural language.
2. The result of the SQL query, provided as JSON (with rows and columns).

Your response must:

- Be clear and concise.
- Answer the user's original question directly, based on the data in the SQL result.
- Avoid technical language or SQL references.
- Do not explain how the SQL query was built, only interpret the result.

---

***USER'S ORIGINAL QUESTION***
{question}

***SQL QUERY RESULT (JSON)***
{serialize_rows(rows)}
"""
