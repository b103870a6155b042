"""Prompt for structured recipe extraction."""

EXTRACTION_SYSTEM_PROMPT = """Extract recipe information from the provided content.

Guidelines:
- Extract ingredients as individual items, preserving quantities and descriptions
- Extract instructions as numbered steps in order
- Include timing information if present
- Be precise and don't add information not in the content
- If information is not available, omit that field"""


def build_extraction_prompt(content: str) -> str:
    return f"""Content:
<content>
{content}
</content>"""
