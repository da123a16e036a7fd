"""
Token cost estimates for the OpenAI models the generators can be configured with.
Prices are USD per 1M tokens (input, output).
"""

MODEL_PRICING = {
    "gpt-4o-mini": {"prompt": 0.150, "completion": 0.600},
    "gpt-4o": {"prompt": 2.50, "completion": 10.00},
    "gpt-4.1-nano": {"prompt": 0.10, "completion": 0.40},
    "gpt-4.1-mini": {"prompt": 0.40, "completion": 1.60},
    "gpt-4.1": {"prompt": 2.00, "completion": 8.00},
    "o4-mini": {"prompt": 1.10, "completion": 4.40},
}

DEFAULT_PRICING_MODEL = "gpt-4o-mini"
TOKENS_PER_UNIT = 1_000_000


def get_model_pricing(model: str = DEFAULT_PRICING_MODEL) -> dict:
    """Price entry for a model name.

    Dated snapshots ("gpt-4o-2024-08-06") resolve to their base model;
    anything unrecognised is priced as the default model.
    """
    if not model:
        return MODEL_PRICING[DEFAULT_PRICING_MODEL]
    if model in MODEL_PRICING:
        return MODEL_PRICING[model]

    # longest name first: "gpt-4o-mini-..." must not match "gpt-4o"
    matches = [known for known in MODEL_PRICING if model.startswith(known)]
    if matches:
        return MODEL_PRICING[max(matches, key=len)]
    return MODEL_PRICING[DEFAULT_PRICING_MODEL]


def calculate_openai_cost(prompt_tokens: int, completion_tokens: int, model: str = DEFAULT_PRICING_MODEL) -> float:
    pricing = get_model_pricing(model)
    cost = (
        prompt_tokens * pricing["prompt"]
        + completion_tokens * pricing["completion"]
    ) / TOKENS_PER_UNIT
    return round(cost, 6)


def format_cost(cost: float) -> str:
    precision = 6 if cost < 0.01 else 4
    return f"${cost:.{precision}f}"
