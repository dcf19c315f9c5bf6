"""
PostDesk Backend — Response Envelope Tests
"""

from postdesk.schemas.common import PageMeta, PaginatedResult
from postdesk.services.envelope import EnvelopeTransformer


class TestEnvelopeTransformer:
    def setup_method(self):
        self.transformer = EnvelopeTransformer()

    def test_defaults(self):
        envelope = self.transformer.wrap({"id": 1})
        assert envelope.status is True
        assert envelope.status_code == 200
        assert envelope.message == "Success"

    def test_data_is_passed_through_untouched(self):
        data = {"nested": [1, 2, 3]}
        assert self.transformer.wrap(data).data is data

    def test_custom_status_and_message(self):
        envelope = self.transformer.wrap(None, status_code=201, message="User created successfully")
        assert envelope.status_code == 201
        assert envelope.message == "User created successfully"
        assert envelope.data is None

    def test_wire_format_is_camel_case(self):
        page = PaginatedResult(items=[], meta=PageMeta(total=0, page=1, last_page=0, limit=10))
        wire = self.transformer.wrap(page).model_dump(mode="json", by_alias=True)
        assert wire == {
            "status": True,
            "statusCode": 200,
            "message": "Success",
            "data": {"items": [], "meta": {"total": 0, "page": 1, "lastPage": 0, "limit": 10}},
        }
