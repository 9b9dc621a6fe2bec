import dataclasses

import pytest
import requests

from matching.response import ResponseDescriptor


def make_requests_response(status: int, content: bytes) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.encoding = "utf-8"
    return response


class TestFromText:
    def test_counts(self):
        descriptor = ResponseDescriptor.from_text(404, "not found\nplease retry")
        assert descriptor.code == 404
        assert descriptor.lines == 2
        assert descriptor.words == 4
        assert descriptor.size == 22

    def test_size_is_utf8_bytes(self):
        assert ResponseDescriptor.from_text(200, "é").size == 2

    def test_empty_body(self):
        descriptor = ResponseDescriptor.from_text(204, None)
        assert (descriptor.body, descriptor.lines, descriptor.words, descriptor.size) == ("", 0, 0, 0)

    def test_is_immutable(self):
        descriptor = ResponseDescriptor.from_text(200, "{}")
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.code = 500


class TestFromResponse:
    def test_sender_dict(self):
        descriptor = ResponseDescriptor.from_response({"status": 500, "body": "boom", "headers": {}})
        assert descriptor.code == 500
        assert descriptor.body == "boom"
        assert descriptor.words == 1

    @pytest.mark.parametrize("status", ["error", 0, None])
    def test_failed_exchange(self, status):
        descriptor = ResponseDescriptor.from_response({"status": status, "body": None})
        assert descriptor.code == 0
        assert descriptor.body == ""


def test_from_requests():
    descriptor = ResponseDescriptor.from_requests(make_requests_response(201, '{"id": "ü"}'.encode("utf-8")))
    assert descriptor.code == 201
    assert descriptor.body == '{"id": "ü"}'
    assert descriptor.lines == 1
    assert descriptor.words == 2
    assert descriptor.size == 12
