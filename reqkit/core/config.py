import json
import logging
import math
import os
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from dotenv import load_dotenv


load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"
INTERNAL_SERVER_ERROR = "500_INTERNAL_SERVER_ERROR"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?)(?:0[xX]([0-9a-fA-F]*)|([0-9]+))")

ParamValue = Union[int, str, List[str]]


def parse_int(value: Any) -> Optional[int]:
    """Parse the leading integer of a value, ignoring trailing characters.

    A `0x` prefix reads the digits as hexadecimal. Returns None when the
    value does not start with an integer, or is a non-finite float.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    match = _LEADING_INT_RE.match(value)
    if not match:
        return None
    sign, hex_digits, digits = match.groups()
    if hex_digits is not None:
        if not hex_digits:
            return None
        number = int(hex_digits, 16)
    else:
        number = int(digits)
    return -number if sign == "-" else number


@dataclass(frozen=True)
class PassthroughRule:
    """Rule for parameters that are accepted as-is."""

    def evaluate(self, value: str) -> Optional[ParamValue]:
        return value


@dataclass(frozen=True)
class NumberRule:
    def evaluate(self, value: str) -> Optional[ParamValue]:
        return parse_int(value)


@dataclass(frozen=True)
class StringRule:
    """Rule for enumerated string parameters, optionally `|`-separated."""

    allowed_values: Tuple[str, ...] = ()
    allow_multiple_values: bool = False

    def evaluate(self, value: str) -> Optional[ParamValue]:
        if not isinstance(value, str):
            return None
        candidates = value.split("|")
        if not self.allow_multiple_values:
            candidates = candidates[:1]

        accepted = [c for c in candidates if c in self.allowed_values]
        if not accepted:
            return None
        if not self.allow_multiple_values:
            return accepted[0]
        return accepted


ParameterRule = Union[PassthroughRule, NumberRule, StringRule]


@dataclass(frozen=True)
class StatusEntry:
    code: int
    message: str


def parse_rule(name: str, raw: Mapping[str, Any]) -> Optional[ParameterRule]:
    """Build a rule from its JSON form, or None if the type is unsupported."""
    if not raw.get("requiresEval"):
        return PassthroughRule()

    rule_type = raw.get("type")
    if rule_type == "number":
        return NumberRule()
    if rule_type == "string":
        return StringRule(
            allowed_values=tuple(raw.get("allowedValues") or ()),
            allow_multiple_values=bool(raw.get("allowMultipleValues", False)),
        )

    logger.warning(f"Ignoring parameter rule '{name}' with unsupported type: {rule_type!r}")
    return None


def _merge_unique(*groups: List[str]) -> Tuple[str, ...]:
    # Deduplicate while preserving order
    seen = set()
    result: List[str] = []
    for group in groups:
        for item in group:
            if item not in seen:
                seen.add(item)
                result.append(item)
    return tuple(result)


@dataclass(frozen=True)
class Config:
    """Process-wide configuration, built once and passed to every helper.

    Combines environment variables (deployment settings) with the JSON rule
    file (parameter rules, authorization block, HTTP status table).
    """

    environment: str = "production"
    supabase_url: str = ""
    supabase_service_key: str = ""
    users_table: str = "Users"
    params: Mapping[str, ParameterRule] = field(default_factory=dict)
    allowed_audiences: Tuple[str, ...] = ()
    statuses: Mapping[str, StatusEntry] = field(default_factory=dict)

    @property
    def is_dev(self) -> bool:
        return self.environment == "dev"

    def status(self, name: str) -> StatusEntry:
        """Look up a status entry, falling back to the internal-server-error one."""
        entry = self.statuses.get(name)
        if entry is None:
            entry = self.statuses.get(INTERNAL_SERVER_ERROR, StatusEntry(500, "Internal Server Error"))
        return entry

    def validate(self) -> None:
        if not self.supabase_url:
            raise ValueError("SUPABASE_URL environment variable is required")
        if not self.supabase_service_key:
            raise ValueError("SUPABASE_SERVICE_KEY environment variable is required")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], **settings: Any) -> "Config":
        params: Dict[str, ParameterRule] = {}
        for name, raw in (data.get("params") or {}).items():
            rule = parse_rule(name, raw)
            if rule is not None:
                params[name] = rule

        statuses = {
            name: StatusEntry(code=int(entry["code"]), message=str(entry["message"]))
            for name, entry in (data.get("httpStatus") or {}).items()
        }

        authorization = data.get("authorization") or {}
        env_audiences = settings.pop("extra_audiences", None) or []
        audiences = _merge_unique(list(authorization.get("allowedCognitoAudiences") or []), env_audiences)

        return cls(params=params, allowed_audiences=audiences, statuses=statuses, **settings)


def load_config(path: str | Path | None = None) -> Config:
    """Read the rule file and environment variables into a Config."""
    config_path = Path(path or os.getenv("REQKIT_CONFIG_PATH") or DEFAULT_CONFIG_PATH)
    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    extra_audiences = [a.strip() for a in os.getenv("ALLOWED_COGNITO_AUDIENCES", "").split(",") if a.strip()]

    return Config.from_dict(
        data,
        environment=os.getenv("ENVIRONMENT", "production"),
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY", ""),
        users_table=os.getenv("USERS_TABLE", "Users"),
        extra_audiences=extra_audiences,
    )


@lru_cache(maxsize=1)
def get_config() -> Config:
    return load_config()
