"""Unit tests for Prometheus metrics."""

from prometheus_client import REGISTRY

from contractseal.observability.metrics import record_contract_operation


def _operation_count(operation: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "contract_operations_total", {"operation": operation, "outcome": outcome}
    )
    return value or 0.0


def test_metrics_endpoint_returns_text(client) -> None:
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "contract_operations_total" in response.text


def test_record_contract_operation_increments_counter() -> None:
    before = _operation_count("sign", "success")

    record_contract_operation("sign", "success")

    assert _operation_count("sign", "success") == before + 1


def test_http_requests_are_labelled_by_route_template(client, auth_headers, sender) -> None:
    client.get("/api/v1/contracts/some-contract-id", headers=auth_headers(sender))

    response = client.get("/metrics")

    # Whether the label carries the router prefix depends on the Starlette version.
    assert '/contracts/{contract_id}"' in response.text
    assert "some-contract-id" not in response.text
