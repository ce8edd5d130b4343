"""Operation Evaluation — tests for the pure poll verdict.

Tests cover:
    - PENDING and RUNNING continue
    - DONE without error succeeds
    - DONE with error payload or HTTP error status fails
"""

from computeops.core.domain_types import PollVerdict
from computeops.core.evaluate_operation import evaluate_operation
from computeops.schemas.operation import OperationStatus


def test_pending_continues():
    assert evaluate_operation(OperationStatus(status="PENDING")) is PollVerdict.CONTINUE


def test_running_continues():
    assert evaluate_operation(OperationStatus(status="RUNNING")) is PollVerdict.CONTINUE


def test_done_succeeds():
    assert evaluate_operation(OperationStatus(status="DONE")) is PollVerdict.SUCCEEDED


def test_done_with_error_payload_fails():
    status = OperationStatus.model_validate({
        "status": "DONE",
        "error": {"errors": [{"code": "RESOURCE_IN_USE", "message": "disk in use"}]},
    })
    assert evaluate_operation(status) is PollVerdict.FAILED


def test_done_with_http_error_status_fails():
    status = OperationStatus.model_validate({
        "status": "DONE", "httpErrorStatusCode": 409, "httpErrorMessage": "CONFLICT",
    })
    assert evaluate_operation(status) is PollVerdict.FAILED


def test_running_with_error_payload_still_continues():
    # Error payloads only count once the operation is terminal
    status = OperationStatus.model_validate({
        "status": "RUNNING", "error": {"errors": [{"code": "X"}]},
    })
    assert evaluate_operation(status) is PollVerdict.CONTINUE
