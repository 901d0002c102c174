import logging
import uuid


class TestRequestCorrelation:
    def test_echoes_caller_supplied_id(self, api_client):
        response = api_client.get(
            "/api/v1/products/by-slug/missing/", HTTP_X_REQUEST_ID="storefront-42"
        )

        assert response.status_code == 404
        assert response["X-Request-ID"] == "storefront-42"

    def test_mints_uuid4_when_absent(self, client):
        request_id = client.get("/health")["X-Request-ID"]

        assert uuid.UUID(request_id).version == 4

    def test_request_log_lines_carry_the_id(self, api_client_with_correlation, caplog):
        api_client, cid = api_client_with_correlation

        with caplog.at_level(logging.INFO):
            api_client.get("/health")

        messages = [record.getMessage() for record in caplog.records]
        assert any("request_finished" in m and cid in m for m in messages), messages
