import os
import logging

import seo_writer.core.env  # noqa: F401  (loads the .env file)

logger = logging.getLogger(__name__)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
FRONTEND_URL_PROD = os.getenv("FRONTEND_URL_PROD", "https://app.seowriter.io")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Minimum body length the draft stage is asked for and validated against
ARTICLE_MIN_WORDS = int(os.getenv("ARTICLE_MIN_WORDS", "1500"))

MODEL_TYPES = ("articles", "keywords", "competitors", "niche", "products", "services", "audit")
WORKFLOW_STEPS = ("BLUEPRINT", "DRAFT", "METADATA")

DEFAULT_CHEAP_MODEL = "gpt-4o-mini"
DEFAULT_WORKFLOW_MODEL = "gpt-4o"

LANGUAGE_NAMES = {
    "bg": "Bulgarian",
    "en": "English",
}


def get_model_for_type(model_type: str) -> str:
    """Resolve the OpenAI model for a content type.

    OPENAI_DEFAULT_MODEL wins over everything, then OPENAI_MODEL_<TYPE>,
    then the cheap fallback model.
    """
    model_type = model_type.lower()
    if model_type not in MODEL_TYPES:
        raise ValueError(f"Unknown content type: {model_type}")

    default_model = os.getenv("OPENAI_DEFAULT_MODEL")
    if default_model:
        return default_model

    type_model = os.getenv(f"OPENAI_MODEL_{model_type.upper()}")
    if type_model:
        return type_model

    return DEFAULT_CHEAP_MODEL


def get_workflow_model(step: str) -> str:
    """Resolve the model for one article workflow step (BLUEPRINT/DRAFT/METADATA)."""
    step = step.upper()
    if step not in WORKFLOW_STEPS:
        raise ValueError(f"Unknown workflow step: {step}")

    model = (
        os.getenv(f"OPENAI_MODEL_{step}")
        or os.getenv("OPENAI_DEFAULT_MODEL")
        or DEFAULT_WORKFLOW_MODEL
    )
    logger.info(f"[WorkflowConfig] Step: {step}, Model: {model}")
    return model


def language_name(code: str | None) -> str:
    """Map a business language code to the name used inside prompts."""
    return LANGUAGE_NAMES.get((code or "").lower(), "English")
