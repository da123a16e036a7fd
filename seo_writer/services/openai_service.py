import json
import logging
from typing import Any, Dict, Optional, Type

from google.cloud import firestore as gcfirestore
from pydantic import BaseModel, ValidationError

from seo_writer.services.firestore import get_db
from seo_writer.utils.cost_calculator import calculate_openai_cost

logger = logging.getLogger(__name__)

# Client initialized lazily
_client = None


def get_openai_client():
    """Get or create OpenAI client (lazy initialization)."""
    global _client
    if _client is None:
        from openai import OpenAI
        _client = OpenAI()
    return _client


def _build_messages(prompt: str, system: Optional[str], image_url: Optional[str]) -> list:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})

    if image_url:
        messages.append({
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        })
    else:
        messages.append({"role": "user", "content": prompt})
    return messages


def _json_schema_format(schema: Type[BaseModel], name: str) -> dict:
    """Response format asking the model for output matching a pydantic model.

    Strict mode rejects the optional fields and maxLength limits these schemas
    carry, so the request is non-strict and the result is validated locally.
    """
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "schema": schema.model_json_schema(),
            "strict": False,
        },
    }


def _extract_usage(response, model: str) -> Dict[str, Any]:
    usage = getattr(response, "usage", None)
    token_usage = {
        "prompt_tokens": getattr(usage, "prompt_tokens", 0) if usage else 0,
        "completion_tokens": getattr(usage, "completion_tokens", 0) if usage else 0,
        "total_tokens": getattr(usage, "total_tokens", 0) if usage else 0,
    }
    token_usage["estimated_cost_usd"] = calculate_openai_cost(
        prompt_tokens=token_usage["prompt_tokens"],
        completion_tokens=token_usage["completion_tokens"],
        model=model,
    )
    return token_usage


def _create_completion(**kwargs):
    try:
        response = get_openai_client().chat.completions.create(**kwargs)
    except Exception as e:
        raise RuntimeError(f"OpenAI API request failed: {e}")

    if not response.choices:
        raise RuntimeError("OpenAI returned no choices")
    return response


def run_json_completion(
    prompt: str,
    *,
    model: str,
    system: Optional[str] = None,
    schema: Optional[Type[BaseModel]] = None,
    schema_name: Optional[str] = None,
    temperature: Optional[float] = None,
    image_url: Optional[str] = None,
) -> Dict[str, Any]:
    """Run a chat completion that must answer with JSON.

    With ``schema`` the request carries a JSON-schema response format and the
    parsed payload is validated into that model; otherwise plain JSON mode.

    Returns dict with "result" (dict or model instance) and "usage".
    Raises RuntimeError for API failures, ValueError for bad JSON / schema.
    """
    if schema is not None:
        response_format = _json_schema_format(schema, schema_name or schema.__name__.lower())
    else:
        response_format = {"type": "json_object"}

    kwargs: Dict[str, Any] = {
        "model": model,
        "messages": _build_messages(prompt, system, image_url),
        "response_format": response_format,
    }
    if temperature is not None:
        kwargs["temperature"] = temperature

    response = _create_completion(**kwargs)
    usage = _extract_usage(response, model)

    content = response.choices[0].message.content or "{}"
    try:
        result_json = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON from model: {e}: {content[:300]}")

    if schema is None:
        return {"result": result_json, "usage": usage}

    try:
        parsed = schema.model_validate(result_json)
    except ValidationError as e:
        raise ValueError(f"Model output failed {schema.__name__} validation: {e}")

    return {"result": parsed, "usage": usage}


def run_text_completion(
    prompt: str,
    *,
    model: str,
    system: Optional[str] = None,
    temperature: Optional[float] = None,
    image_url: Optional[str] = None,
) -> Dict[str, Any]:
    """Run a chat completion that answers with free text (Markdown)."""
    kwargs: Dict[str, Any] = {
        "model": model,
        "messages": _build_messages(prompt, system, image_url),
    }
    if temperature is not None:
        kwargs["temperature"] = temperature

    response = _create_completion(**kwargs)
    return {
        "text": response.choices[0].message.content or "",
        "usage": _extract_usage(response, model),
    }


def record_usage(user_id: Optional[str], usage: Dict[str, Any], model: str):
    """Accumulate token usage and spend on the user document."""
    if not user_id or not usage:
        return
    try:
        get_db().collection("users").document(user_id).set({
            "tokenUsage": gcfirestore.Increment(usage.get("total_tokens", 0)),
            "promptTokens": gcfirestore.Increment(usage.get("prompt_tokens", 0)),
            "completionTokens": gcfirestore.Increment(usage.get("completion_tokens", 0)),
            "totalSpend": gcfirestore.Increment(usage.get("estimated_cost_usd", 0.0)),
            "model": model,
            "lastActivity": gcfirestore.SERVER_TIMESTAMP,
        }, merge=True)
    except Exception as e:
        logger.warning(f"Failed to update usage metrics for {user_id}: {e}")
