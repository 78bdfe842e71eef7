"""
tests/test_responses.py - Envelope builders shared by endpoints and exception handlers
"""

from hullworks.core.responses import error_code_for, error_response, success_response
from hullworks.schemas.common import Meta


class TestErrorCodes:

    def test_known_statuses(self):
        assert error_code_for(404) == "NOT_FOUND"
        assert error_code_for(409) == "CONFLICT"
        assert error_code_for(401) == "UNAUTHORIZED"

    def test_server_errors_collapse_to_internal(self):
        assert error_code_for(500) == "INTERNAL_ERROR"
        assert error_code_for(503) == "INTERNAL_ERROR"

    def test_unknown_client_status_is_generic(self):
        assert error_code_for(418) == "ERROR"


class TestEnvelopes:

    def test_success_has_null_error(self):
        body = success_response({"message": "ok"}, meta={"total_count": 1})
        assert body == {"data": {"message": "ok"}, "error": None, "meta": {"total_count": 1}}

    def test_error_defaults_to_empty_field_errors(self):
        body = error_response("CONFLICT", "Already exists")
        assert body["data"] is None
        assert body["error"] == {"code": "CONFLICT", "message": "Already exists", "field_errors": []}
        assert body["meta"] is None

    def test_field_errors_are_shaped(self):
        body = error_response("VALIDATION_ERROR", "Validation failed", [{"field": "qty", "message": "too small"}])
        assert body["error"]["field_errors"] == [{"field": "qty", "message": "too small"}]


class TestMeta:

    def test_whole_list_is_one_page(self):
        meta = Meta.whole_list(["a", "b", "c"])
        assert (meta.page, meta.page_size, meta.total_count) == (1, 3, 3)
