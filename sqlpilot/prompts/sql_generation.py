"""
Query generation prompt.

Turns a natural-language request plus the assembled context (time block,
schema block, knowledge block) into a single T-SQL statement.
"""

from sqlpilot.prompts.registry import register_prompt

SQL_GENERATION_PROMPT = "sql.generate"

SQL_SYSTEM_INSTRUCTION = (
    "You are an expert SQL developer for Winpos3. "
    "You prioritize real-time data tables (outm_YYMM) for sales summaries."
)


@register_prompt(
    name=SQL_GENERATION_PROMPT,
    version="1.0",
    description="Natural language to T-SQL with schema, knowledge and time context",
    system_instruction=SQL_SYSTEM_INSTRUCTION,
)
def sql_generate() -> str:
    return """Convert the natural language request into a Microsoft SQL Server (T-SQL) query.

{context}

Instructions:
1. **Strictly** follow the table naming convention: {sales_table} for real-time sales summaries.
2. For "Today's Sales", use: SELECT ISNULL(SUM(tmamoney1), 0) FROM {sales_table} WHERE day1 = '{today}' AND sale_status != '9'
3. Do not use markdown formatting. Return only the SQL string.

Request: {request}"""
