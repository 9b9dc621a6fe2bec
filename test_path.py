import pytest

from payload.errors import InvalidPathError, PathNotFoundError
from payload.path import (
    PATH_QUERY,
    is_root_array_prefixed,
    prefix_all_elements,
    prefix_first_element,
    quote_key,
    quote_segments,
    sanitize,
    split_last_segment,
)


class TestSanitize:
    def test_replaces_hash_with_dot(self):
        assert sanitize("owner#address#city") == "owner.address.city"

    def test_is_idempotent(self):
        once = sanitize("$[0]#pets#name")
        assert sanitize(once) == once == "$[0].pets.name"

    def test_leaves_plain_paths_alone(self):
        assert sanitize("a.b[1]") == "a.b[1]"


class TestPrefixes:
    def test_first_element_prefix(self):
        assert prefix_first_element("name") == "$[0]#name"
        assert is_root_array_prefixed(prefix_first_element("name"))

    def test_all_elements_prefix(self):
        assert prefix_all_elements("name") == "$[*]#name"
        assert is_root_array_prefixed(prefix_all_elements("name"))

    def test_unprefixed(self):
        assert not is_root_array_prefixed("name")


@pytest.mark.parametrize("path, expected", [
    ("owner.address.city", "owner.address.city"),
    ("$[0].name", "$[0].name"),
    ("$[*].tags[1]", "$[*].tags[1]"),
    ("prénom", "['prénom']"),
    ("owner.prénom", "owner['prénom']"),
    ("$[0].prénom", "$[0]['prénom']"),
    ("adresse.numéro de rue", "adresse['numéro de rue']"),
    ("owner['first name']", "owner['first name']"),
    ("l'été.x", "[\"l'été\"].x"),
    ("a..b", "a..b"),
])
def test_quote_segments(path, expected):
    assert quote_segments(path) == expected


def test_quote_key_only_quotes_keys_with_spaces():
    assert quote_key("first name") == "['first name']"
    assert quote_key("name") == "name"


@pytest.mark.parametrize("path, expected", [
    ("a.b.c", ("a.b", "c")),
    ("$.a", ("$", "a")),
    ("name", ("$", "name")),
])
def test_split_last_segment(path, expected):
    assert split_last_segment(path) == expected


class TestPathQuery:
    @pytest.fixture
    def document(self):
        return {"pet": {"name": "rex", "tags": ["a", "b"]}, "owners": [{"id": 1}, {"id": 2}]}

    def test_resolve_definite_path(self, document):
        assert PATH_QUERY.resolve(document, "pet.name") == "rex"
        assert PATH_QUERY.resolve(document, "$.pet.tags[1]") == "b"

    def test_resolve_wildcard_returns_all_matches(self, document):
        assert PATH_QUERY.resolve(document, "owners[*].id") == [1, 2]

    def test_resolve_keys_function(self, document):
        assert PATH_QUERY.resolve(document, "pet.keys()") == ["name", "tags"]

    def test_keys_function_on_scalar_is_invalid(self, document):
        with pytest.raises(InvalidPathError):
            PATH_QUERY.resolve(document, "pet.name.keys()")

    def test_resolve_missing_path(self, document):
        with pytest.raises(PathNotFoundError):
            PATH_QUERY.resolve(document, "pet.age")

    def test_not_found_is_an_invalid_path(self):
        assert issubclass(PathNotFoundError, InvalidPathError)

    def test_malformed_path(self, document):
        with pytest.raises(InvalidPathError) as e:
            PATH_QUERY.resolve(document, "pet[")
        assert not isinstance(e.value, PathNotFoundError)

    def test_set_existing_path(self, document):
        PATH_QUERY.set(document, "pet.name", "max")
        assert document["pet"]["name"] == "max"

    def test_set_missing_leaf_is_not_found(self, document):
        with pytest.raises(PathNotFoundError):
            PATH_QUERY.set(document, "pet.age", 3)
        assert "age" not in document["pet"]

    def test_delete(self, document):
        PATH_QUERY.delete(document, "pet.tags")
        assert document["pet"] == {"name": "rex"}

    def test_delete_in_every_element(self, document):
        items = [{"id": 1, "x": 1}, {"id": 2}]
        PATH_QUERY.delete(items, "$[*].id")
        assert items == [{"x": 1}, {}]

    def test_delete_root_is_invalid(self, document):
        with pytest.raises(InvalidPathError):
            PATH_QUERY.delete(document, "$")

    def test_rename_keeps_value(self, document):
        PATH_QUERY.rename(document, "pet", "name", "title")
        assert document["pet"] == {"tags": ["a", "b"], "title": "rex"}

    def test_rename_missing_key(self, document):
        with pytest.raises(PathNotFoundError):
            PATH_QUERY.rename(document, "pet", "age", "years")

    def test_put_adds_key(self, document):
        PATH_QUERY.put(document, "$", "extra", "value")
        assert document["extra"] == "value"
