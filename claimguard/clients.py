# claimguard/clients.py: Gemini client factory and connectivity probe

import logging
from typing import Any, Dict, Optional

import requests
from langchain_google_genai import ChatGoogleGenerativeAI

from claimguard import config


def get_gemini_llm(
    temperature: Optional[float] = None,
    response_schema: Optional[Dict[str, Any]] = None,
    max_output_tokens: Optional[int] = None,
    thinking_budget: Optional[int] = None,
) -> ChatGoogleGenerativeAI:
    """
    Builds a Gemini chat model lazily, so the service can start (and run the
    local path) without an API key configured.

    Passing a response_schema switches the model into JSON mode.
    """
    if not config.GOOGLE_API_KEY:
        logging.error("GOOGLE_API_KEY not found in environment or .env.")
        raise RuntimeError("API Key is missing. Please check your configuration.")

    kwargs: Dict[str, Any] = {
        "model": config.GEMINI_MODEL,
        "google_api_key": config.GOOGLE_API_KEY,
    }
    if temperature is not None:
        kwargs["temperature"] = temperature
    if response_schema is not None:
        kwargs["response_mime_type"] = "application/json"
        kwargs["response_schema"] = response_schema
    if max_output_tokens is not None:
        kwargs["max_output_tokens"] = max_output_tokens
    if thinking_budget is not None:
        kwargs["thinking_budget"] = thinking_budget

    logging.info(f"Initializing Gemini LLM client ({config.GEMINI_MODEL})...")
    return ChatGoogleGenerativeAI(**kwargs)


def is_online() -> bool:
    """
    Reports whether the hosted model is reachable. OFFLINE_MODE wins over the probe.
    """
    if config.OFFLINE_MODE:
        return False
    try:
        requests.head(config.CONNECTIVITY_CHECK_URL, timeout=config.CONNECTIVITY_TIMEOUT)
        return True
    except requests.RequestException as e:
        logging.warning(f"Connectivity probe failed: {e}")
        return False
