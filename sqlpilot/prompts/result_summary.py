"""Result summary prompt: a short business insight over a row preview."""

from sqlpilot.prompts.registry import register_prompt

RESULT_SUMMARY_PROMPT = "result.summarize"

SUMMARY_SYSTEM_INSTRUCTION = "You are a friendly data analyst. Answer in Korean."


@register_prompt(
    name=RESULT_SUMMARY_PROMPT,
    version="1.0",
    description="Short Korean insight over the first rows of a query result",
    system_instruction=SUMMARY_SYSTEM_INSTRUCTION,
)
def result_summarize() -> str:
    return """Analyze this JSON data (SQL result) and provide a very short, friendly business insight in Korean.

Data: {preview}
"""
