import json
import os
from typing import Any, Dict, List, Optional

import yaml

from matching.criteria import MatchCriteria

MATCH_SECTION = "match"


class ConfigError(ValueError):
    pass


def load_config(path: str) -> Dict:
    """
    Load a JSON or YAML configuration file. A missing file is an empty configuration.
    """
    if not os.path.exists(path):
        return {}
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) if path.endswith(('.yaml', '.yml')) else json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read configuration {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must be a mapping, got {type(data).__name__}")
    return data


def _as_list(value: Any, key: str) -> Optional[List]:
    """Accept a list or a comma separated string ("200,404" as given on the command line)."""
    if value is None:
        return None
    if isinstance(value, (str, int)):
        value = [v.strip() for v in str(value).split(",") if v.strip()]
    if not isinstance(value, (list, tuple, set)):
        raise ConfigError(f"'{key}' must be a list or a comma separated string")
    return list(value)


def _as_numbers(value: Any, key: str) -> Optional[List[int]]:
    values = _as_list(value, key)
    if values is None:
        return None
    try:
        return [int(v) for v in values]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' must only contain integers: {e}") from e


def match_criteria_from_config(config: Dict[str, Any]) -> MatchCriteria:
    """
    Build MatchCriteria from the match_* keys of config, or of its "match" section.
    """
    section = config.get(MATCH_SECTION, config) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{MATCH_SECTION}' must be a mapping")

    regex = section.get("match_response_regex")
    if regex is not None and not isinstance(regex, str):
        raise ConfigError("'match_response_regex' must be a string")

    return MatchCriteria(
        codes=_as_list(section.get("match_response_codes"), "match_response_codes"),
        lines=_as_numbers(section.get("match_response_lines"), "match_response_lines"),
        words=_as_numbers(section.get("match_response_words"), "match_response_words"),
        sizes=_as_numbers(section.get("match_response_sizes"), "match_response_sizes"),
        regex=regex,
        match_input=bool(section.get("match_input", False)),
    )
