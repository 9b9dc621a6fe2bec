import logging
import random
import string
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from payload.document import is_array
from payload.union import replace_field

log = logging.getLogger(__name__)

FieldFilter = Callable[[str, str], bool]
ValueProducer = Callable[[str], Iterable]

PRIMITIVE_REPLACEMENT = "fuzz_primitive_string"
RANDOM_BODY_LENGTH = 50


def random_string(length: int) -> str:
    return ''.join(random.choices(string.ascii_letters + string.digits, k=length))


class FieldStrategy:
    """
    A payload rule applied field by field: field_filter decides if a field
    qualifies, value_producer supplies the values written into it.
    """

    def __init__(self, replace_what: str, replace_with: str, skip_message: str,
                 field_filter: FieldFilter, value_producer: ValueProducer):
        self.replace_what = replace_what
        self.replace_with = replace_with
        self.skip_message = skip_message
        self.field_filter = field_filter
        self.value_producer = value_producer

    def description(self) -> str:
        return f"iterate through each {self.replace_what} field and replace it with {self.replace_with} values"

    def fuzz(self, payload: str, fields: Iterable[str],
             alternatives: Optional[Dict[str, Tuple[str, Iterable[str]]]] = None) -> List[Dict]:
        """
        Args:
            payload: JSON request body.
            fields: '#'-separated field chains to consider.
            alternatives: For fields that only exist inside a oneOf/anyOf
                grouping, the (alternative key, sibling keys to drop) pair used
                to collapse the grouping around the new value.

        Returns:
            One {"field", "value", "payload"} entry per mutated field and value.
        """
        alternatives = alternatives or {}
        mutations = []
        for field in fields:
            if not self.field_filter(payload, field):
                log.debug("Skipping %s: %s", field, self.skip_message)
                continue
            alternative_key, eliminate_keys = alternatives.get(field, (None, ()))
            for value in self.value_producer(field):
                mutations.append({
                    "field": field,
                    "value": value,
                    "payload": replace_field(payload, field, value, alternative_key, eliminate_keys),
                })
        return mutations


class ReplaceArraysWithPrimitivesStrategy(FieldStrategy):
    def __init__(self):
        super().__init__(
            replace_what="array",
            replace_with="primitive",
            skip_message="Fuzzer only runs for arrays",
            field_filter=is_array,
            value_producer=lambda field: [PRIMITIVE_REPLACEMENT],
        )


class RandomStringBodyStrategy:
    """Replaces the whole request body with a random string."""

    scenario = "Send a request with a random string body"

    def __init__(self, length: int = RANDOM_BODY_LENGTH):
        self.length = length

    def description(self) -> str:
        return "send a request with a random string body"

    def get_payload(self, payload: str = None) -> str:
        return random_string(self.length)
