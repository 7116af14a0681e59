"""
AI Prompt Templates
Centralized prompt templates for AI services.
"""

from typing import Sequence


def get_sql_prompt(question: str, table_name: str, columns: Sequence[str]) -> str:
    """
    Get the SQL generation prompt for translating a question into one query.

    Args:
        question: User's natural language question
        table_name: Name of the table holding the uploaded data
        columns: Ordered column names of that table

    Returns:
        Formatted prompt string
    """
    column_list = ", ".join(f'"{c}"' for c in columns)
    return f"""You are a SQL expert. Given this table schema and user question, generate a DuckDB SQL query.

Table: {table_name}
Columns: {column_list}
All columns are stored as text.

User Question: "{question}"

Rules:
- Only return the SQL query, no explanations
- Return a single read-only SELECT statement
- Table name is "{table_name}"
- Column names must be quoted with double quotes exactly as listed
- Cast text columns with TRY_CAST(... AS DOUBLE) before numeric comparisons or aggregations
- Keep queries simple and focused on the user's question
- Use appropriate aggregations, filters, and sorting

SQL Query:"""
