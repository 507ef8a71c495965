"""Loader for the static table schema catalog."""
import json
import logging
from pathlib import Path
from typing import Any, List, Union

from models.catalog import TableColumn, TableDescriptor

logger = logging.getLogger(__name__)


def load_table_schemas(path: Union[str, Path]) -> List[TableDescriptor]:
    """
    Load table descriptors from a JSON schema file.

    The file holds a JSON array of objects shaped like
    ``{"datasetName": ..., "tableName": ..., "schema": [{"name": ..., "type": ...}]}``.
    Order in the file is preserved.

    Args:
        path: Path to the schema file

    Returns:
        List of TableDescriptor objects

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or an entry is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Table schema file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Table schema file {path} is not valid JSON: {e}") from e

    catalog = parse_table_schemas(raw)
    logger.info(f"Loaded {len(catalog)} table schemas from {path}")
    return catalog


def parse_table_schemas(raw: Any) -> List[TableDescriptor]:
    """
    Convert decoded schema JSON into table descriptors.

    Args:
        raw: Decoded JSON (expected to be a list of table objects)

    Returns:
        List of TableDescriptor objects in input order
    """
    if not isinstance(raw, list):
        raise ValueError("Table schema file must contain a JSON array of tables")

    catalog = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValueError(f"Table entry {index} must be an object")

        missing = [key for key in ("datasetName", "tableName", "schema") if key not in entry]
        if missing:
            raise ValueError(f"Table entry {index} is missing: {', '.join(missing)}")

        columns = []
        for column in entry["schema"]:
            try:
                columns.append(TableColumn(name=column["name"], type=column["type"]))
            except (KeyError, TypeError) as e:
                raise ValueError(
                    f"Column in {entry['datasetName']}.{entry['tableName']} "
                    f"must have 'name' and 'type': {column!r}"
                ) from e

        catalog.append(TableDescriptor(
            dataset_name=entry["datasetName"],
            table_name=entry["tableName"],
            columns=tuple(columns)
        ))

    return catalog
