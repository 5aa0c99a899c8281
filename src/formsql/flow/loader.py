"""
Flow Loader
Reads flow definitions and collected responses from YAML or JSON files

Expected flow format (keys may be camelCase as exported by the web
builder, or snake_case):

    ```yaml
    id: app-registration
    name: Register an application
    tableName: apps
    questions:
      - id: q_name
        type: text
        label: Application name
        sqlColumnName: app_name
        required: true
    sqlOperations:
      - id: op1
        operationType: INSERT
        tableName: apps
        columnMappings:
          - questionId: q_name
            columnName: app_name
    ```
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict, List

import yaml

from ..schemas import Flow, Response
from ..utils import FlowDefinitionError, get_logger

logger = get_logger(__name__)


def _read_structured(file_path: str) -> Any:
    if not os.path.exists(file_path):
        raise FlowDefinitionError(f"File not found: {file_path}", source=file_path)

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.endswith('.yaml') or file_path.endswith('.yml'):
                return yaml.safe_load(f)
            return json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise FlowDefinitionError(
            f"Could not parse {file_path}: {e}",
            source=file_path,
            original_error=e,
        ) from e


def flow_from_dict(data: Dict[str, Any], source: str = "<dict>") -> Flow:
    if not isinstance(data, dict):
        raise FlowDefinitionError(f"Flow definition must be a mapping, got {type(data).__name__}", source=source)
    if "flow" in data and isinstance(data["flow"], dict):
        data = data["flow"]
    return Flow.from_dict(data)


def load_flow(file_path: str) -> Flow:
    """Load a flow definition from a .yaml/.yml or .json file"""
    flow = flow_from_dict(_read_structured(file_path), source=file_path)
    logger.info(
        f"Loaded flow {flow.id!r}: {len(flow.questions)} questions, "
        f"{len(flow.sql_operations)} operations"
    )
    return flow


def responses_from_data(data: Any, source: str = "<data>") -> List[Response]:
    """
    Accept either a list of ``{questionId, value}`` records, a
    ``{"responses": [...]}`` wrapper or a plain ``{questionId: value}`` mapping.
    """
    if isinstance(data, dict) and isinstance(data.get("responses"), list):
        data = data["responses"]

    if isinstance(data, list):
        responses = []
        for item in data:
            if not isinstance(item, dict):
                raise FlowDefinitionError(f"Response entries must be mappings: {item!r}", source=source)
            responses.append(Response.from_dict(item))
        return responses

    if isinstance(data, dict):
        return [Response(question_id=str(k), value=v) for k, v in data.items()]

    raise FlowDefinitionError(f"Unrecognised responses payload in {source}", source=source)


def load_responses(file_path: str) -> List[Response]:
    """Load collected responses from a .yaml/.yml or .json file"""
    return responses_from_data(_read_structured(file_path), source=file_path)
