import pytest
from mystery_slot.exceptions import (
    AppException,
    ValidationException,
    ConfigurationError,
    InvalidBetError,
    InvalidSessionError,
    SimulationLimitException,
    InternalServerErrorException
)
from mystery_slot.error_codes import ErrorCodes

def test_app_exception_instantiation():
    error_code = "TEST_001"
    status_message = "Test message"
    status_code = 400
    details = {"field": "value"}
    action_button = {"text": "Retry", "actionType": "RETRY_ACTION"}

    exc = AppException(
        error_code=error_code,
        status_message=status_message,
        status_code=status_code,
        details=details,
        action_button=action_button
    )

    assert exc.error_code == error_code
    assert exc.status_message == status_message
    assert exc.status_code == status_code
    assert exc.details == details
    assert exc.action_button == action_button
    assert str(exc) == status_message

def test_app_exception_defaults():
    exc = AppException(error_code="TEST_002", status_message="Default test", status_code=500)
    assert exc.details == {}
    assert exc.action_button == {}

@pytest.mark.parametrize("exc_class, error_code, status_code", [
    (ValidationException, ErrorCodes.VALIDATION_ERROR, 422),
    (ConfigurationError, ErrorCodes.SLOT_CONFIG_ERROR, 500),
    (InvalidBetError, ErrorCodes.INVALID_BET, 400),
    (InvalidSessionError, ErrorCodes.INVALID_SESSION, 409),
    (SimulationLimitException, ErrorCodes.SIMULATION_LIMIT_EXCEEDED, 400),
    (InternalServerErrorException, ErrorCodes.INTERNAL_SERVER_ERROR, 500),
])
def test_subclass_codes(exc_class, error_code, status_code):
    exc = exc_class(status_message="Something specific", details={"k": "v"})
    assert exc.error_code == error_code
    assert exc.status_code == status_code
    assert exc.status_message == "Something specific"
    assert exc.details == {"k": "v"}
    assert isinstance(exc, AppException)
    with pytest.raises(exc_class):
        raise exc

def test_default_messages():
    assert InvalidBetError().status_message == "Bet amount must be positive"
    assert InvalidSessionError().status_message == "Invalid bonus session operation"
    assert ConfigurationError().status_message == "Invalid slot configuration"
