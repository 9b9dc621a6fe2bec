import re
from typing import Any, List, Tuple

from jsonpath_ng import parse as parse_jsonpath
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError
from jsonpath_ng.jsonpath import Child, Fields, Index, JSONPath, Root, This

from payload.errors import InvalidPathError, PathNotFoundError

# Prefix addressing the first element when the document root is an array.
FIRST_ELEMENT_FROM_ROOT_ARRAY = "$[0]#"

# Prefix addressing every element when the document root is an array.
ALL_ELEMENTS_ROOT_ARRAY = "$[*]#"

KEYS_FUNCTION = ".keys()"

# Segments the path-query lexer accepts without quoting.
PLAIN_SEGMENT = re.compile(r"[$*]|[A-Za-z_@][A-Za-z0-9_@\-]*|`[^`]*`")


def sanitize(path: str) -> str:
    """Replace the '#' separator used in field chains with the path-query '.' separator."""
    return path.replace("#", ".")


def prefix_first_element(path: str) -> str:
    return FIRST_ELEMENT_FROM_ROOT_ARRAY + path


def prefix_all_elements(path: str) -> str:
    return ALL_ELEMENTS_ROOT_ARRAY + path


def is_root_array_prefixed(path: str) -> bool:
    return path.startswith(FIRST_ELEMENT_FROM_ROOT_ARRAY) or path.startswith(ALL_ELEMENTS_ROOT_ARRAY)


def quote_key(key: str) -> str:
    """Bracket-quote keys containing a space so they stay valid path segments."""
    if " " in key:
        return f"['{key}']"
    return key


def split_last_segment(path: str) -> Tuple[str, str]:
    """
    Split a dotted path into (parent path, final segment).
    A path without a '.' is a direct child of the root.
    """
    if "." not in path:
        return "$", path
    parent, _, last = path.rpartition(".")
    return parent, last


def _split_segments(path: str) -> List[str]:
    """Split on '.' separators outside brackets and quoted names."""
    segments, current = [], []
    depth, quote = 0, None
    for ch in path:
        if quote:
            if ch == quote:
                quote = None
        elif depth and ch in "'\"":
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == "." and depth == 0:
            segments.append("".join(current))
            current = []
            continue
        current.append(ch)
    segments.append("".join(current))
    return segments


def _quote_segment(segment: str) -> str:
    name, bracket, rest = segment.partition("[")
    if not name or PLAIN_SEGMENT.fullmatch(name):
        return segment
    quote = '"' if "'" in name else "'"
    return f"[{quote}{name}{quote}]{bracket}{rest}"


def quote_segments(path: str) -> str:
    """
    Bracket-quote every dotted segment the path-query lexer would reject, such
    as names with spaces or non-ASCII letters: 'owner.prénom' -> "owner['prénom']".
    """
    quoted = ""
    previous = None
    for segment in _split_segments(path):
        segment = _quote_segment(segment)
        if previous is not None and not (previous and segment.startswith("[")):
            quoted += "."
        quoted += segment
        previous = segment
    return quoted


def _is_definite(expr: JSONPath) -> bool:
    """A path is definite when it can select at most one node."""
    if isinstance(expr, Child):
        return _is_definite(expr.left) and _is_definite(expr.right)
    if isinstance(expr, Fields):
        return len(expr.fields) == 1 and expr.fields[0] != "*"
    if isinstance(expr, Index):
        return len(getattr(expr, "indices", (expr,))) == 1
    return isinstance(expr, (Root, This))


class PathQuery:
    """
    Path-query capability over parsed JSON trees (dicts, lists and scalars).

    Every operation works in place on the given tree and signals problems with
    the payload.errors hierarchy: InvalidPathError for paths that cannot be
    compiled and PathNotFoundError for paths that select nothing.
    """

    def compile(self, path: str) -> JSONPath:
        if path is None or not path.strip():
            raise InvalidPathError(str(path), "empty path")
        try:
            return parse_jsonpath(quote_segments(path))
        except (JsonPathLexerError, JsonPathParserError) as e:
            raise InvalidPathError(path, str(e)) from e

    def resolve(self, document: Any, path: str) -> Any:
        """
        Return the node selected by path.

        Definite paths return the node itself, wildcard paths return the list of
        matches. A trailing '.keys()' returns the keys of the selected object.
        """
        want_keys = path.endswith(KEYS_FUNCTION)
        if want_keys:
            path = path[: -len(KEYS_FUNCTION)]

        expr = self.compile(path)
        matches = expr.find(document)
        if not matches:
            raise PathNotFoundError(path)

        value = matches[0].value if _is_definite(expr) else [m.value for m in matches]
        if want_keys:
            if not isinstance(value, dict):
                raise InvalidPathError(path, "keys() can only be applied to an object")
            return list(value.keys())
        return value

    def set(self, document: Any, path: str, value: Any) -> Any:
        """Replace every node selected by path. The path must already exist."""
        expr = self.compile(path)
        if not expr.find(document):
            raise PathNotFoundError(path)
        return expr.update(document, value)

    def delete(self, document: Any, path: str) -> Any:
        expr = self.compile(path)
        if isinstance(expr, Root):
            raise InvalidPathError(path, "the root node cannot be deleted")
        if not expr.find(document):
            raise PathNotFoundError(path)
        try:
            return expr.filter(lambda _: True, document)
        except NotImplementedError as e:
            raise InvalidPathError(path, "path cannot be used for deletion") from e

    def rename(self, document: Any, parent_path: str, old_key: str, new_key: str) -> Any:
        """Rename old_key to new_key in every object selected by parent_path."""
        expr = self.compile(parent_path)
        matches = expr.find(document)
        if not matches:
            raise PathNotFoundError(parent_path)

        renamed = False
        for match in matches:
            node = match.value
            if isinstance(node, dict) and old_key in node:
                node[new_key] = node.pop(old_key)
                renamed = True

        if not renamed:
            raise PathNotFoundError(f"{parent_path}.{quote_key(old_key)}")
        return document

    def put(self, document: Any, parent_path: str, key: str, value: Any) -> Any:
        """Add key: value to every object selected by parent_path."""
        expr = self.compile(parent_path)
        matches = expr.find(document)
        if not matches:
            raise PathNotFoundError(parent_path)
        for match in matches:
            if not isinstance(match.value, dict):
                raise InvalidPathError(parent_path, "can only add properties to an object")
            match.value[key] = value
        return document


PATH_QUERY = PathQuery()
