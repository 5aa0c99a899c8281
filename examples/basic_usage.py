#!/usr/bin/env python3
"""
Basic Usage Example for FormSQL

This example demonstrates:
1. Importing a CREATE TABLE statement as form questions
2. Adding conditional visibility and a guarded UPDATE
3. Walking the flow, validating answers and compiling SQL
"""
import sys
import os

# Add src to path for local development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from formsql import (
    ConditionalLogic,
    ConditionalOperator,
    Flow,
    Response,
    SchemaContext,
    SQLOperation,
    compile_flow,
    get_next_question,
    parse_ddl,
    scan_dangerous_sql,
    setup_logging,
    validate_operations,
    validate_submission,
)


DDL = """
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    customer_name VARCHAR(100) NOT NULL,
    quantity INTEGER NOT NULL,
    status TEXT CHECK (status IN ('pending', 'shipped', 'cancelled')),
    cancel_reason TEXT,
    ship_date DATE,
    gift_wrap BOOLEAN
);
"""

ANSWERS = {
    "customer_name": "Alice O'Hara",
    "quantity": 2,
    "status": "cancelled",
    "cancel_reason": "Ordered twice",
    "ship_date": "2024-06-01",
    "gift_wrap": "no",
}


def main():
    # Setup logging
    setup_logging(level="INFO")

    print("=" * 60)
    print("FormSQL - Basic Usage Example")
    print("=" * 60)

    print("\n1. Parsing DDL...")
    table = parse_ddl(DDL)[0]
    print(SchemaContext.from_parsed_tables([table]).to_markdown())

    questions = table.questions
    by_column = {q.sql_column_name: q for q in questions}

    print("2. Building the flow...")
    by_column["cancel_reason"].conditional_logic = ConditionalLogic(
        question_id=by_column["status"].id,
        operator=ConditionalOperator.EQUALS,
        value="cancelled",
    )
    archive = SQLOperation.from_dict({
        "id": "archive-cancelled",
        "operationType": "UPDATE",
        "tableName": "order_archive",
        "order": 1,
        "columnMappings": [{"questionId": by_column["cancel_reason"].id, "columnName": "reason"}],
        "conditions": [{
            "columnName": "customer_name",
            "operator": "equals",
            "value": "${" + by_column["customer_name"].id + "}",
            "valueType": "question",
        }],
        "runConditions": [{"questionId": by_column["status"].id, "operator": "equals", "value": "cancelled"}],
    })
    flow = Flow(
        id="orders",
        name="Order entry",
        questions=questions,
        sql_operations=[table.suggested_operation, archive],
        table_name=table.table_name,
    )

    print("3. Answering questions...")
    responses = []
    index = 0
    while True:
        question = get_next_question(flow.questions, index, responses)
        if question is None:
            break
        value = ANSWERS.get(question.sql_column_name)
        print(f"   {question.label}? {value}")
        responses.append(Response(question.id, value))
        index = flow.questions.index(question) + 1

    check = validate_submission(responses, flow)
    if not check.is_valid:
        print(f"   Missing: {', '.join(check.missing_questions)}")
        return

    print("\n4. Compiling SQL...")
    sql = compile_flow(flow, responses)
    print(sql)

    print("\n5. Guardrails...")
    safety = validate_operations(flow.sql_operations)
    for warning in safety.all_warnings:
        print(f"   {warning}")
    for warning in scan_dangerous_sql(sql).warnings:
        print(f"   {warning}")

    print("\n" + "=" * 60)
    print("Example completed!")
    print("=" * 60)


if __name__ == "__main__":
    main()
