"""Schema catalog data models."""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class TableColumn:
    """A single column of a warehouse table."""
    name: str
    type: str


@dataclass(frozen=True)
class TableDescriptor:
    """A queryable table and its columns, in declaration order."""
    dataset_name: str
    table_name: str
    columns: Tuple[TableColumn, ...]

    def fully_qualified_name(self, project_id: str) -> str:
        """Return the ``project.dataset.table`` reference used in FROM clauses."""
        return f"{project_id}.{self.dataset_name}.{self.table_name}"
