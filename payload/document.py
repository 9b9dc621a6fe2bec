import json
import logging
import re
from typing import Any, Callable, Optional

import yaml

from payload.errors import InvalidPathError, JsonPathError, MalformedJsonError, PathNotFoundError
from payload.path import PATH_QUERY, PathQuery, prefix_first_element, sanitize

log = logging.getLogger(__name__)

# Returned by read operations when a path cannot be resolved.
NOT_SET = "NOT_SET"


def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant: {name}")


class JsonScalarLoader(yaml.SafeLoader):
    """
    YAML loader whose plain scalars resolve like JSON literals: only true/false,
    null and decimal numbers change type, everything else ('yes', 'off', '~',
    '0x10', '1_000', dates) stays a string.
    """


JsonScalarLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in (
        "tag:yaml.org,2002:bool", "tag:yaml.org,2002:int", "tag:yaml.org,2002:float",
        "tag:yaml.org,2002:null", "tag:yaml.org,2002:timestamp")]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
JsonScalarLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool", re.compile(r"^(?:true|false)$"), list("tf"))
JsonScalarLoader.add_implicit_resolver(
    "tag:yaml.org,2002:null", re.compile(r"^null$"), ["n"])
JsonScalarLoader.add_implicit_resolver(
    "tag:yaml.org,2002:int", re.compile(r"^-?(?:0|[1-9][0-9]*)$"), list("-0123456789"))
JsonScalarLoader.add_implicit_resolver(
    "tag:yaml.org,2002:float",
    re.compile(r"^-?(?:0|[1-9][0-9]*)(?:\.[0-9]+(?:[eE][-+]?[0-9]+)?|[eE][-+]?[0-9]+)$"),
    list("-0123456789"))


class JsonParser:
    """
    Immutable parser configuration.

    The strict parser accepts RFC JSON only. The permissive parser falls back to
    YAML flow syntax, which also takes unquoted scalars and single-quoted strings.
    """

    def __init__(self, permissive: bool):
        self._permissive = permissive

    @property
    def permissive(self) -> bool:
        return self._permissive

    def parse(self, text: str) -> Any:
        if text is None or not str(text).strip():
            raise MalformedJsonError(text)
        try:
            if self._permissive:
                return json.loads(text)
            return json.loads(text, parse_constant=_reject_constant)
        except ValueError as e:
            if not self._permissive:
                raise MalformedJsonError(text, e) from e
        try:
            return yaml.load(text, Loader=JsonScalarLoader)
        except yaml.YAMLError as e:
            raise MalformedJsonError(text, e) from e


STRICT_PARSER = JsonParser(permissive=False)
PERMISSIVE_PARSER = JsonParser(permissive=True)


def to_json(value: Any) -> str:
    """Compact serialization shared by every operation returning a payload."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


class JsonDocument:
    """A parsed JSON value with path-based accessors. Paths may use '#' as separator."""

    def __init__(self, value: Any, query: PathQuery = PATH_QUERY):
        self.value = value
        self.query = query

    @classmethod
    def parse(cls, text: str, parser: JsonParser = PERMISSIVE_PARSER, query: PathQuery = PATH_QUERY) -> "JsonDocument":
        return cls(parser.parse(text), query)

    def is_root_array(self) -> bool:
        return isinstance(self.value, list)

    def read(self, path: str) -> Any:
        return self.query.resolve(self.value, sanitize(path))

    def set(self, path: str, value: Any):
        self.value = self.query.set(self.value, sanitize(path), value)

    def delete(self, path: str):
        self.value = self.query.delete(self.value, sanitize(path))

    def rename(self, parent_path: str, old_key: str, new_key: str):
        self.value = self.query.rename(self.value, sanitize(parent_path), old_key, new_key)

    def put(self, key: str, value: Any, parent_path: str = "$"):
        self.value = self.query.put(self.value, sanitize(parent_path), key, value)

    def to_json(self) -> str:
        return to_json(self.value)


def is_not_set(value: Any) -> bool:
    """Case-insensitive comparison with the NOT_SET sentinel."""
    return NOT_SET.lower() == str(value).lower()


def is_valid_json(text: str) -> bool:
    """
    Strict check. Bare scalars parse fine but are not payloads, so the text
    must also contain an object or an array.
    """
    try:
        STRICT_PARSER.parse(text)
    except MalformedJsonError:
        return False
    return "{" in text or "]" in text


def is_root_array(payload: str) -> bool:
    try:
        return JsonDocument.parse(payload).is_root_array()
    except MalformedJsonError:
        return False


def _test_node(payload: str, path: str, predicate: Callable[[Any], bool]) -> bool:
    document = JsonDocument.parse(payload)
    if document.is_root_array():
        path = prefix_first_element(path)
    return predicate(document.read(path))


def _is_value_node(node: Any) -> bool:
    return not isinstance(node, (dict, list))


def is_primitive(payload: str, path: str) -> bool:
    """
    True if the node at path is a scalar. An absent path is not primitive;
    a path that cannot be compiled raises InvalidPathError.
    """
    try:
        return _test_node(payload, path, _is_value_node)
    except PathNotFoundError:
        return False
    except MalformedJsonError:
        log.debug("Payload is not valid JSON, %s is not primitive", path)
        return False


def is_object(payload: str, path: str) -> bool:
    try:
        return not _test_node(payload, path, _is_value_node)
    except InvalidPathError:
        return False
    except MalformedJsonError:
        log.debug("Payload is not valid JSON, %s is not an object", path)
        return False


def is_array(payload: str, path: str) -> bool:
    try:
        return _test_node(payload, path, lambda node: isinstance(node, list))
    except InvalidPathError:
        return False
    except MalformedJsonError:
        log.debug("Payload is not valid JSON, %s is not an array", path)
        return False


def read(payload: str, path: str) -> Any:
    """Return the value at path, or NOT_SET when it cannot be resolved for any reason."""
    try:
        return JsonDocument.parse(payload).read(path)
    except JsonPathError as e:
        log.debug("Expected variable %s was not found. Setting to NOT_SET: %s", path, e)
        return NOT_SET


def is_field_present(payload: str, path: str) -> bool:
    return not is_not_set(read(payload, path))


def is_valid_non_empty_map(payload: str, path: str) -> bool:
    keys = read(payload, path + ".keys()")
    return keys is not None and not is_not_set(keys) and len(keys) > 0


def delete_node(payload: str, path: str) -> str:
    """Remove the node at path. Blank payloads and unresolvable paths are returned untouched."""
    if payload is None or not payload.strip():
        return payload
    try:
        document = JsonDocument.parse(payload)
        document.delete(path)
        return document.to_json()
    except JsonPathError as e:
        log.debug("Could not delete %s: %s", path, e)
        return payload


def insert_root(payload: str, key: str, value: Any) -> str:
    document = JsonDocument.parse(payload)
    document.put(key, value)
    return document.to_json()


def is_empty(payload: Optional[str]) -> bool:
    if payload is None or not payload.strip():
        return True
    return payload.strip() in ("{}", '"{}"')


def _canonical_json(value: Any) -> str:
    # keys are stringified first so mixed YAML keys still sort
    return json.dumps(json.loads(to_json(value)), separators=(",", ":"), ensure_ascii=False, sort_keys=True, default=str)


def equal_as_json(first: str, second: str) -> bool:
    """Compare the serialized forms of both documents, ignoring whitespace and key order."""
    try:
        return _canonical_json(JsonDocument.parse(first).value) == _canonical_json(JsonDocument.parse(second).value)
    except MalformedJsonError:
        return False
