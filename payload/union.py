"""
Collapsing of oneOf/anyOf alternatives inside generated payloads.

Payload examples generated from a schema position expressed as oneOf/anyOf
carry every alternative side by side, flagged by an "_OF" marker in the text
(e.g. "ONE_OF", "ANY_OF"). To put a single concrete value in such a position
the chosen alternative is renamed to the expected key and its siblings are
dropped.

The marker check is textual: a regular field name containing "_OF" also
enables the collapse.
"""
import json
import logging
from typing import Any, Iterable, Optional

from payload.document import PERMISSIVE_PARSER, JsonDocument, is_root_array
from payload.errors import InvalidPathError, JsonPathError, MalformedJsonError, PathNotFoundError
from payload.path import prefix_all_elements, quote_key, sanitize, split_last_segment

log = logging.getLogger(__name__)

UNION_MARKER = "_OF"
ROOT_PATH = "$"


def resolve_union(payload: str, target_path: str, alternative_key: str, new_value: str,
                  eliminate_keys: Optional[Iterable[str]]) -> str:
    """
    Put new_value at target_path. If target_path does not exist and the payload
    contains a oneOf/anyOf grouping, rename alternative_key under the target's
    parent to the target's final segment and delete eliminate_keys from that parent.

    Args:
        payload: JSON text to mutate.
        target_path: Path of the node to replace ('#' or '.' separated).
        alternative_key: Key holding the inlined alternative when target_path is missing.
        new_value: Replacement value as JSON text (permissive grammar).
        eliminate_keys: Sibling keys to remove after the rename.

    Returns:
        The mutated payload, or the original one when nothing could be applied.
    """
    if eliminate_keys is None:
        raise ValueError("eliminate_keys must not be None")

    if target_path == ROOT_PATH:
        return new_value

    try:
        value = PERMISSIVE_PARSER.parse(new_value)
    except MalformedJsonError:
        log.debug("Could not add node %s", target_path)
        return payload

    target_path = sanitize(target_path)
    try:
        document = JsonDocument.parse(payload)
        document.set(target_path, value)
        return document.to_json()
    except PathNotFoundError:
        log.debug("Path %s not found, looking for oneOf/anyOf alternatives", target_path)
    except (InvalidPathError, MalformedJsonError) as e:
        log.debug("Could not add node %s: %s", target_path, e)
        return payload

    if UNION_MARKER not in payload:
        return payload

    return _collapse_alternatives(payload, target_path, alternative_key, eliminate_keys)


def _collapse_alternatives(payload: str, target_path: str, alternative_key: str, eliminate_keys: Iterable[str]) -> str:
    parent_path, replacement_key = split_last_segment(target_path)
    document = JsonDocument.parse(payload)

    try:
        document.rename(parent_path, alternative_key, replacement_key)
    except JsonPathError as e:
        log.debug("Could not rename %s to %s under %s: %s", alternative_key, replacement_key, parent_path, e)

    for key in eliminate_keys:
        node_to_delete = f"{parent_path}.{quote_key(key)}"
        log.debug("to delete %s", node_to_delete)
        try:
            document.delete(node_to_delete)
        except InvalidPathError as e:
            log.debug("Path not found when removing any_of/one_of: %s", e)

    return document.to_json()


def replace_field(payload: str, field: str, value: Any, alternative_key: Optional[str] = None,
                  eliminate_keys: Iterable[str] = ()) -> str:
    """
    Replace a request field with value. Root arrays get the value in every element.

    When alternative_key is given and the field only exists as one of several
    oneOf/anyOf alternatives, that alternative is renamed to the field and
    eliminate_keys are dropped. Without it a missing field leaves the payload unchanged.
    """
    if is_root_array(payload):
        field = prefix_all_elements(field)
    path = sanitize(field)
    if alternative_key is not None:
        return resolve_union(payload, path, alternative_key, json.dumps(value), set(eliminate_keys))

    try:
        document = JsonDocument.parse(payload)
        document.set(path, value)
        return document.to_json()
    except JsonPathError as e:
        log.debug("Could not replace %s: %s", path, e)
        return payload
