class ErrorCodes:
    GENERIC_ERROR = "GENERIC_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    # Game engine
    SLOT_CONFIG_ERROR = "SLOT_CONFIG_ERROR"
    INVALID_BET = "INVALID_BET"
    INVALID_SESSION = "INVALID_SESSION"
    SIMULATION_LIMIT_EXCEEDED = "SIMULATION_LIMIT_EXCEEDED"
