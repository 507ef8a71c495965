"""Unit tests for SQL extraction from model replies."""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from services.sql_extraction import extract_sql


class TestExtractSql:
    """Tests for extract_sql."""

    def test_fenced_block(self):
        """A ```sql block yields its trimmed body."""
        assert extract_sql("```sql\nSELECT 1\n```") == "SELECT 1"

    def test_fenced_block_with_surrounding_text(self):
        """Text around the block is ignored."""
        reply = "Here is the query:\n```sql\n  SELECT region\n  FROM t\n```\nHope that helps!"
        assert extract_sql(reply) == "SELECT region\n  FROM t"

    def test_tag_is_case_insensitive(self):
        """The sql tag matches in any case."""
        assert extract_sql("```SQL\nSELECT 2\n```") == "SELECT 2"
        assert extract_sql("```Sql\nSELECT 3\n```") == "SELECT 3"

    def test_first_block_wins(self):
        """Only the first sql block is returned."""
        reply = "```sql\nSELECT 1\n```\nor\n```sql\nSELECT 2\n```"
        assert extract_sql(reply) == "SELECT 1"

    def test_fallback_to_whole_reply(self):
        """A reply without a fenced block is returned trimmed."""
        assert extract_sql("  SELECT * FROM t LIMIT 100  \n") == "SELECT * FROM t LIMIT 100"

    def test_untagged_fence_falls_back(self):
        """A fence without the sql tag is not treated as SQL."""
        reply = "```\nSELECT 1\n```"
        assert extract_sql(reply) == reply

    def test_empty_reply(self):
        """Empty or missing replies yield an empty string."""
        assert extract_sql("") == ""
        assert extract_sql(None) == ""
        assert extract_sql("   ") == ""
