"""Model-family capability table shared by the solve and evaluate paths."""

from __future__ import annotations

from dataclasses import dataclass

MAX_TOKENS = "max_tokens"
MAX_COMPLETION_TOKENS = "max_completion_tokens"

# Constrained models only accept the provider's default temperature.
FIXED_TEMPERATURE = 1


@dataclass(frozen=True)
class ModelCapabilities:
    """Request-shaping options a model family accepts."""

    supports_custom_temperature: bool
    token_limit_param: str
    supports_structured_output: bool


CONSTRAINED = ModelCapabilities(
    supports_custom_temperature=False,
    token_limit_param=MAX_COMPLETION_TOKENS,
    supports_structured_output=False,
)
STRUCTURED_CHAT = ModelCapabilities(
    supports_custom_temperature=True,
    token_limit_param=MAX_TOKENS,
    supports_structured_output=True,
)
STANDARD = ModelCapabilities(
    supports_custom_temperature=True,
    token_limit_param=MAX_TOKENS,
    supports_structured_output=False,
)

# Checked in order; the first family whose marker appears in the model id wins.
MODEL_FAMILIES: tuple[tuple[tuple[str, ...], ModelCapabilities], ...] = (
    (("o1", "o3", "gpt-5"), CONSTRAINED),
    (("gpt-4", "gpt-3.5"), STRUCTURED_CHAT),
)


def classify_model(model: str) -> ModelCapabilities:
    """Look up capabilities by case-insensitive substring match on the model id."""
    model_lower = model.lower()
    for markers, capabilities in MODEL_FAMILIES:
        if any(marker in model_lower for marker in markers):
            return capabilities
    return STANDARD


def sampling_temperature(capabilities: ModelCapabilities, default: float) -> float:
    if capabilities.supports_custom_temperature:
        return default
    return FIXED_TEMPERATURE
