"""
LangChain prompt templates for SQL generation.
"""
from langchain_core.prompts import PromptTemplate

# ── SQL generation ────────────────────────────────────────────────────────────

SQL_SYSTEM_TEMPLATE = """\
You are a SQL expert. Your task is to convert natural language questions into SQL queries.

Rules:
1. Only generate SELECT statements
2. Never use DELETE, UPDATE, INSERT, DROP, ALTER, or any DDL/DML statements
3. Always use proper table and column names from the provided schema
4. Return ONLY the SQL query, no explanations or markdown
5. If the question cannot be answered with the given schema, respond with: -- ERROR: [reason]

Database Schema:
{schema}
"""

SQL_USER_TEMPLATE = "Convert this question to SQL: {question}"

sql_system_prompt = PromptTemplate(
    input_variables=["schema"],
    template=SQL_SYSTEM_TEMPLATE,
)

sql_user_prompt = PromptTemplate(
    input_variables=["question"],
    template=SQL_USER_TEMPLATE,
)
