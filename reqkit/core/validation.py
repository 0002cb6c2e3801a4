import logging
import math
from typing import Any, Dict, Mapping, Optional, Sequence

from .config import Config, ParamValue


logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 50
DEFAULT_OFFSET = 0


def get_parameters(event: Mapping[str, Any]) -> Dict[str, str]:
    """Merge path and query parameters; query keys win on collision."""
    params: Dict[str, str] = {}
    params.update(event.get("pathParameters") or {})
    params.update(event.get("queryStringParameters") or {})
    return params


def parse_parameter(key: str, allowed_params: Sequence[str]) -> Optional[str]:
    if key in allowed_params:
        return key
    return None


def evaluate_param_value(value: Any, key: str, config: Config) -> Optional[ParamValue]:
    rule = config.params.get(key)
    if rule is None:
        return None
    return rule.evaluate(value)


def _loose_number(value: Any) -> float:
    """Numeric value of a parameter for comparisons; NaN when it has none.

    Strings count only when the whole (trimmed) string is a number.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def extract_parameters(event: Mapping[str, Any], allowed_params: Sequence[str], config: Config) -> Dict[str, ParamValue]:
    """Return the allow-listed parameters of a request, validated against the rule table.

    Invalid or unknown parameters are dropped rather than reported. Falsy
    results (0, "", []) are dropped as well. `limit` and `offset` receive
    defaults when allow-listed, and `limit` is capped at MAX_LIMIT.
    """
    params = get_parameters(event)

    extracted: Dict[str, ParamValue] = {}
    for key, raw_value in params.items():
        validated_key = parse_parameter(key, allowed_params)
        if validated_key is None:
            continue
        validated_value = evaluate_param_value(raw_value, validated_key, config)
        if validated_value:
            extracted[validated_key] = validated_value

    if "limit" in allowed_params:
        limit = extracted.get("limit")
        if limit is None:
            extracted["limit"] = DEFAULT_LIMIT
        elif _loose_number(limit) > MAX_LIMIT:
            extracted["limit"] = MAX_LIMIT
    if "offset" in allowed_params and "offset" not in extracted:
        extracted["offset"] = DEFAULT_OFFSET
    return extracted
