"""
Prompt construction and response parsing for generated text
"""

from typing import Any
import json
import re

FENCED_JSON = re.compile(r"```json\s*\n([\s\S]*?)\n\s*```")
FENCED_ANY = re.compile(r"```[^\n]*\n([\s\S]*?)\n\s*```")

JSON_RESPONSE_SUFFIX = (
    "Please give your response in valid JSON format. "
    "Make sure the JSON output is properly formatted.\n"
    "Response:"
)


def build_prompt(instruction: str, data: Any, expect_json: bool = True) -> str:
    """Instruction, then the data as indented JSON, then the answer format"""
    data_str = data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False, default=str)
    prompt = f"{instruction.strip()}\n\nData: {data_str}\n\n"
    if expect_json:
        return prompt + JSON_RESPONSE_SUFFIX
    return prompt + "Response:"


def extract_json_block(text: str) -> str:
    """
    Return the JSON candidate inside a generated answer.

    Prefers a ```json fenced block, then any fenced block, then the whole
    text; stray fences left at either end are stripped.
    """
    match = FENCED_JSON.search(text) or FENCED_ANY.search(text)
    candidate = match.group(1) if match else text
    candidate = candidate.strip()
    candidate = re.sub(r"^```(json)?", "", candidate)
    candidate = re.sub(r"```$", "", candidate)
    return candidate.strip()


def parse_generated_json(text: str) -> Any:
    """
    Parse the JSON portion of a generated answer.

    Raises:
        ValueError: if no valid JSON can be read (json.JSONDecodeError is a ValueError)
    """
    return json.loads(extract_json_block(text))
