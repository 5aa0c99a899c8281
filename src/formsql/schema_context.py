"""
Schema Context
Merges table metadata from parsed DDL and user-defined table files into a
single summary suitable for prompt inclusion or display

User-defined table files may be YAML or JSON, either as a ``tables``
mapping:

    ```yaml
    tables:
      apps:
        description: Registered applications
        columns:
          app_id:
            type: integer
            primary_key: true
          app_name:
            type: text
            nullable: false
    ```

or as a list of ``{name, description, columns: [{name, dataType, ...}]}``
records as exported by the web builder.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .schemas import ParsedTable
from .utils import FlowDefinitionError, get_logger

logger = get_logger(__name__)

SOURCE_DDL = "ddl"
SOURCE_USER_DEFINED = "user-defined"


@dataclass
class SchemaContextColumn:
    name: str
    type: str
    nullable: bool = True
    primary_key: bool = False
    default_value: Optional[str] = None
    description: Optional[str] = None
    check_values: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "nullable": self.nullable,
            "primaryKey": self.primary_key,
        }
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        if self.description:
            data["description"] = self.description
        if self.check_values:
            data["checkValues"] = self.check_values
        return data


@dataclass
class SchemaContextTable:
    name: str
    columns: List[SchemaContextColumn] = field(default_factory=list)
    description: Optional[str] = None
    source: str = SOURCE_USER_DEFINED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.description:
            data["description"] = self.description
        data["columns"] = [c.to_dict() for c in self.columns]
        data["source"] = self.source
        return data


@dataclass
class SchemaContext:
    """Tables known to a flow, in the order they were added"""
    tables: List[SchemaContextTable] = field(default_factory=list)

    @classmethod
    def from_parsed_tables(cls, parsed: Sequence[ParsedTable]) -> "SchemaContext":
        context = cls()
        context.add_parsed_tables(parsed)
        return context

    def add_parsed_tables(self, parsed: Sequence[ParsedTable]) -> None:
        for table in parsed:
            self.tables.append(SchemaContextTable(
                name=table.table_name,
                columns=[
                    SchemaContextColumn(
                        name=col.name,
                        type=col.raw_type,
                        nullable=col.nullable,
                        primary_key=col.is_primary_key,
                        check_values=col.check_values,
                    )
                    for col in table.columns
                ],
                source=SOURCE_DDL,
            ))

    def add_tables(self, tables: Sequence[SchemaContextTable]) -> None:
        self.tables.extend(tables)

    def get_table(self, name: str) -> Optional[SchemaContextTable]:
        wanted = name.lower()
        for table in self.tables:
            if table.name.lower() == wanted:
                return table
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"tables": [t.to_dict() for t in self.tables]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def to_markdown(self) -> str:
        if not self.tables:
            return "_No schema available_"

        lines = ["## Database Schema", ""]
        for table in self.tables:
            lines.append(f"### {table.name}")
            if table.description:
                lines.append(f"_{table.description}_")
                lines.append("")
            lines.append("| Column | Type | Nullable | Primary Key | Default | Check Values |")
            lines.append("|--------|------|----------|-------------|---------|-------------|")
            for col in table.columns:
                nullable = "Yes" if col.nullable else "No"
                pk = "✓" if col.primary_key else ""
                default = col.default_value or ""
                check = ", ".join(col.check_values) if col.check_values else ""
                lines.append(f"| {col.name} | {col.type} | {nullable} | {pk} | {default} | {check} |")
            lines.append("")

        return "\n".join(lines) + "\n"


def _column_from_record(record: Dict[str, Any]) -> SchemaContextColumn:
    default = record.get("defaultValue", record.get("default"))
    return SchemaContextColumn(
        name=str(record.get("name", "")),
        type=str(record.get("dataType") or record.get("type") or "text"),
        nullable=bool(record.get("nullable", True)),
        primary_key=bool(record.get("isPrimaryKey", record.get("primary_key", False))),
        default_value=None if default is None else str(default),
        description=record.get("description"),
        check_values=record.get("checkValues") or record.get("check_values"),
    )


def _table_from_record(record: Dict[str, Any]) -> SchemaContextTable:
    columns = record.get("columns") or []
    if isinstance(columns, dict):
        columns = [dict(entry or {}, name=name) for name, entry in columns.items()]
    return SchemaContextTable(
        name=str(record.get("name", "")),
        description=record.get("description"),
        columns=[_column_from_record(c) for c in columns],
        source=SOURCE_USER_DEFINED,
    )


def tables_from_data(data: Any, source: str = "<data>") -> List[SchemaContextTable]:
    if isinstance(data, dict) and "tables" in data:
        data = data["tables"]

    if isinstance(data, dict):
        return [_table_from_record(dict(entry or {}, name=name)) for name, entry in data.items()]
    if isinstance(data, list):
        return [_table_from_record(t) for t in data if isinstance(t, dict)]

    raise FlowDefinitionError(f"Unrecognised table definitions in {source}", source=source)


def load_user_tables(file_path: str) -> List[SchemaContextTable]:
    """Load user-defined tables from a .yaml/.yml or .json file"""
    if not os.path.exists(file_path):
        raise FlowDefinitionError(f"Schema file not found: {file_path}", source=file_path)

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.endswith('.yaml') or file_path.endswith('.yml'):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise FlowDefinitionError(
            f"Could not parse schema file {file_path}: {e}",
            source=file_path,
            original_error=e,
        ) from e

    tables = tables_from_data(data, source=file_path)
    logger.info(f"Loaded {len(tables)} user-defined table(s) from {file_path}")
    return tables
