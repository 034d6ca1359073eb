from mystery_slot.error_codes import ErrorCodes

class AppException(Exception):
    def __init__(self, error_code, status_message, status_code, details=None, action_button=None):
        super().__init__(status_message)
        self.error_code = error_code
        self.status_message = status_message
        self.status_code = status_code
        self.details = details if details is not None else {}
        self.action_button = action_button if action_button is not None else {}

class ValidationException(AppException):
    def __init__(self, status_message="Validation failed", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.VALIDATION_ERROR,
            status_message=status_message,
            status_code=422,
            details=details,
            action_button=action_button
        )

class ConfigurationError(AppException):
    """Static reel configuration is unusable. Raised before any spin is accepted."""
    def __init__(self, status_message="Invalid slot configuration", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.SLOT_CONFIG_ERROR,
            status_message=status_message,
            status_code=500,
            details=details,
            action_button=action_button
        )

class InvalidBetError(AppException):
    def __init__(self, status_message="Bet amount must be positive", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.INVALID_BET,
            status_message=status_message,
            status_code=400,
            details=details,
            action_button=action_button
        )

class InvalidSessionError(AppException):
    def __init__(self, status_message="Invalid bonus session operation", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.INVALID_SESSION,
            status_message=status_message,
            status_code=409,
            details=details,
            action_button=action_button
        )

class SimulationLimitException(AppException):
    def __init__(self, status_message="Requested simulation is too large", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.SIMULATION_LIMIT_EXCEEDED,
            status_message=status_message,
            status_code=400,
            details=details,
            action_button=action_button
        )

class InternalServerErrorException(AppException):
    def __init__(self, status_message="Internal server error", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.INTERNAL_SERVER_ERROR,
            status_message=status_message,
            status_code=500,
            details=details,
            action_button=action_button
        )
