"""
Unit tests for AddressApiService.
"""
import json
from uuid import UUID

import httpx
import pytest
from structlog.testing import capture_logs

from address_portal.application.models import UpdateAddressInput
from address_portal.infrastructure.address_api.client import (
    BAD_REQUEST_MESSAGE,
    NOT_FOUND_MESSAGE,
    error_message_for
)
from address_portal.infrastructure.resilience import RetryConfig
from address_portal.shared.result import Failure, Success

from conftest import BASE_URL, RecordingHandler, json_response

NO_RETRY = RetryConfig(max_retries=0)


class TestListAddresses:
    """Test cases for listing addresses."""

    @pytest.mark.asyncio
    async def test_list_returns_parsed_addresses(self, make_service, sample_address_json):
        handler = RecordingHandler(json_response(200, [sample_address_json]))
        service = make_service(handler)

        result = await service.list_addresses()

        assert isinstance(result, Success)
        assert len(result.value) == 1
        assert result.value[0].city == "London"
        assert result.value[0].postal_code == "NW1 6XE"
        assert handler.requests[0].method == "GET"
        assert str(handler.requests[0].url) == f"{BASE_URL}/api/addresses"

    @pytest.mark.asyncio
    async def test_list_with_no_records_is_success(self, make_service):
        service = make_service(RecordingHandler(json_response(200, [])))

        result = await service.list_addresses()

        assert result == Success([])

    @pytest.mark.asyncio
    async def test_list_with_empty_body_is_empty_success(self, make_service):
        service = make_service(RecordingHandler(httpx.Response(200, content=b"")))

        result = await service.list_addresses()

        assert result == Success([])

    @pytest.mark.asyncio
    async def test_list_with_null_body_is_empty_success(self, make_service):
        service = make_service(RecordingHandler(httpx.Response(200, content=b"null")))

        result = await service.list_addresses()

        assert result == Success([])

    @pytest.mark.asyncio
    async def test_list_failure_uses_status_message(self, make_service):
        service = make_service(RecordingHandler(httpx.Response(403)))

        result = await service.list_addresses()

        assert result == Failure("Request failed with status code: 403")

    @pytest.mark.asyncio
    async def test_list_matches_field_names_case_insensitively(self, make_service, sample_address_id):
        body = [{
            "Id": str(sample_address_id),
            "STREET": "1 Infinite Loop",
            "City": "Cupertino",
            "PostalCode": "95014",
            "country": "USA",
        }]
        service = make_service(RecordingHandler(json_response(200, body)))

        result = await service.list_addresses()

        address = result.value[0]
        assert address.id == sample_address_id
        assert address.street == "1 Infinite Loop"
        assert address.postal_code == "95014"
        assert address.state is None


class TestGetAddress:
    """Test cases for fetching one address."""

    @pytest.mark.asyncio
    async def test_get_returns_address(self, make_service, sample_address_id, sample_address_json):
        handler = RecordingHandler(json_response(200, sample_address_json))
        service = make_service(handler)

        result = await service.get_address(sample_address_id)

        assert isinstance(result, Success)
        assert result.value.id == sample_address_id
        assert str(handler.requests[0].url) == f"{BASE_URL}/api/addresses/{sample_address_id}"

    @pytest.mark.asyncio
    async def test_get_not_found(self, make_service, sample_address_id):
        service = make_service(RecordingHandler(httpx.Response(404, text="gone")))

        result = await service.get_address(sample_address_id)

        assert result == Failure("The requested address was not found.")

    @pytest.mark.asyncio
    async def test_get_with_empty_body_is_caught_failure(self, make_service, sample_address_id):
        service = make_service(RecordingHandler(httpx.Response(200, content=b"")))

        result = await service.get_address(sample_address_id)

        assert isinstance(result, Failure)
        assert result.message.startswith("An error occurred: ")

    @pytest.mark.asyncio
    async def test_get_with_invalid_json_is_caught_failure(self, make_service, sample_address_id):
        service = make_service(RecordingHandler(httpx.Response(200, content=b"{not json")))

        result = await service.get_address(sample_address_id)

        assert isinstance(result, Failure)
        assert result.message.startswith("An error occurred: ")


class TestCreateAddress:
    """Test cases for creating addresses."""

    @pytest.mark.asyncio
    async def test_create_posts_payload_and_returns_created(
        self, make_service, sample_create_input, sample_address_json
    ):
        handler = RecordingHandler(json_response(201, sample_address_json))
        service = make_service(handler)

        result = await service.create_address(sample_create_input)

        assert isinstance(result, Success)
        assert result.value.id == UUID(sample_address_json["id"])

        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/api/addresses"
        assert json.loads(request.content) == {
            "street": "742 Evergreen Terrace",
            "city": "Springfield",
            "state": "Oregon",
            "postalCode": "97403",
            "country": "United States",
        }

    @pytest.mark.asyncio
    async def test_create_bad_request_uses_body(self, make_service, sample_create_input):
        service = make_service(RecordingHandler(httpx.Response(400, text="Name is required")))

        result = await service.create_address(sample_create_input)

        assert result == Failure("Name is required")

    @pytest.mark.asyncio
    async def test_create_bad_request_with_empty_body(self, make_service, sample_create_input):
        service = make_service(RecordingHandler(httpx.Response(400)))

        result = await service.create_address(sample_create_input)

        assert result == Failure("Bad request.")

    @pytest.mark.asyncio
    async def test_create_other_status(self, make_service, sample_create_input):
        service = make_service(RecordingHandler(httpx.Response(409, text="duplicate")))

        result = await service.create_address(sample_create_input)

        assert result == Failure("Request failed with status code: 409")


class TestUpdateAddress:
    """Test cases for updating addresses."""

    @pytest.mark.asyncio
    async def test_update_puts_to_address_url(self, make_service, sample_address_id, sample_address_json):
        handler = RecordingHandler(json_response(200, sample_address_json))
        service = make_service(handler)
        data = UpdateAddressInput(street="1 New Road", city="Leeds", postal_code="LS1", country="UK")

        result = await service.update_address(sample_address_id, data)

        assert isinstance(result, Success)
        request = handler.requests[0]
        assert request.method == "PUT"
        assert str(request.url) == f"{BASE_URL}/api/addresses/{sample_address_id}"
        body = json.loads(request.content)
        assert "id" not in body
        assert body["street"] == "1 New Road"
        assert body["state"] is None

    @pytest.mark.asyncio
    async def test_update_not_found(self, make_service, sample_address_id, sample_create_input):
        service = make_service(RecordingHandler(httpx.Response(404)))
        data = UpdateAddressInput(**sample_create_input.model_dump())

        result = await service.update_address(sample_address_id, data)

        assert result == Failure(NOT_FOUND_MESSAGE)

    @pytest.mark.asyncio
    async def test_update_bad_request_uses_body(self, make_service, sample_address_id, sample_create_input):
        service = make_service(RecordingHandler(httpx.Response(400, text="City is invalid")))
        data = UpdateAddressInput(**sample_create_input.model_dump())

        result = await service.update_address(sample_address_id, data)

        assert result == Failure("City is invalid")


class TestDeleteAddress:
    """Test cases for deleting addresses."""

    @pytest.mark.asyncio
    async def test_delete_success_has_no_payload(self, make_service, sample_address_id):
        handler = RecordingHandler(httpx.Response(204))
        service = make_service(handler)

        result = await service.delete_address(sample_address_id)

        assert result == Success()
        assert result.value is None
        assert handler.requests[0].method == "DELETE"

    @pytest.mark.asyncio
    async def test_delete_not_found(self, make_service, sample_address_id):
        service = make_service(RecordingHandler(httpx.Response(404)))

        result = await service.delete_address(sample_address_id)

        assert result == Failure(NOT_FOUND_MESSAGE)


class TestExceptionsAndLogging:
    """Test cases for exception handling and log events."""

    @pytest.mark.asyncio
    async def test_transport_error_becomes_failure(self, make_service):
        service = make_service(RecordingHandler(httpx.ConnectError("Connection refused")), retry_config=NO_RETRY)

        result = await service.list_addresses()

        assert result == Failure("An error occurred: Connection refused")

    @pytest.mark.asyncio
    async def test_success_logs_before_and_after(self, make_service, sample_address_json):
        service = make_service(RecordingHandler(json_response(200, [sample_address_json])))

        with capture_logs() as logs:
            await service.list_addresses()

        events = [(entry["event"], entry["log_level"]) for entry in logs]
        assert ("Calling address API", "info") in events
        assert ("Address API call succeeded", "info") in events
        succeeded = next(entry for entry in logs if entry["event"] == "Address API call succeeded")
        assert succeeded["count"] == 1

    @pytest.mark.asyncio
    async def test_expected_failure_logs_warning(self, make_service, sample_address_id):
        service = make_service(RecordingHandler(httpx.Response(404)))

        with capture_logs() as logs:
            await service.get_address(sample_address_id)

        failed = [entry for entry in logs if entry["event"] == "Address API call failed"]
        assert len(failed) == 1
        assert failed[0]["log_level"] == "warning"
        assert failed[0]["status_code"] == 404
        assert failed[0]["address_id"] == str(sample_address_id)

    @pytest.mark.asyncio
    async def test_exception_logs_error(self, make_service):
        service = make_service(RecordingHandler(httpx.ReadError("reset by peer")), retry_config=NO_RETRY)

        with capture_logs() as logs:
            await service.list_addresses()

        raised = [entry for entry in logs if entry["event"] == "Address API call raised"]
        assert len(raised) == 1
        assert raised[0]["log_level"] == "error"
        assert raised[0]["error_type"] == "ReadError"


class TestErrorMessageFor:
    """Test cases for the status-to-message mapping."""

    @pytest.mark.parametrize("status_code, body, expected", [
        (404, "anything", NOT_FOUND_MESSAGE),
        (400, "Street is required", "Street is required"),
        (400, "", BAD_REQUEST_MESSAGE),
        (401, "", "Request failed with status code: 401"),
        (500, "boom", "Request failed with status code: 500"),
    ])
    def test_error_message_for(self, status_code, body, expected):
        assert error_message_for(httpx.Response(status_code, text=body)) == expected
