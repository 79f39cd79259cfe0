# claimguard/claim_parser/json_repair.py

"""
JSON output parsing for replies from the hosted model.
"""
import json
import logging
from typing import Any, List

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import JsonOutputParser
from langchain_core.outputs import Generation


class LenientJsonOutputParser(JsonOutputParser):
    """
    JsonOutputParser that also accepts an empty reply (as {}) and a JSON
    object wrapped in prose, which it recovers from the outermost {...} block.
    """

    def parse_result(self, result: List[Generation], *, partial: bool = False) -> Any:
        text = result[0].text.strip()
        if not text:
            return {}

        try:
            parsed = super().parse_result(result, partial=partial)
        except OutputParserException as e:
            logging.error(f"JSON Parse Error. Raw Text: {text!r} ({e})")
            parsed = None
        if isinstance(parsed, dict):
            return parsed

        first_brace = text.find("{")
        last_brace = text.rfind("}")
        if first_brace != -1 and last_brace > first_brace:
            try:
                return json.loads(text[first_brace:last_brace + 1])
            except json.JSONDecodeError as inner_error:
                logging.error(f"Substring JSON Parse Error: {inner_error}")

        raise OutputParserException("Failed to parse model response as JSON.", llm_output=text)
