class AppStatusCode:
    # Generic failures
    OPERATION_FAILED = "1000"
    INVALID_INPUT = "1002"
    REQUIRED_VALIDATION_ERROR = "1003"
    DUPLICATE_ADD_ERROR = "1004"
    NOT_FOUND = "1005"
    INVALID_STATE = "1006"
    SERVICE_UNAVAILABLE = "1007"

    # Authentication / authorization
    AUTHENTICATION_TOKEN_INVALID = "2001"
    AUTHENTICATION_TOKEN_EXPIRED = "2002"
    UNAUTHORIZED_ACTION = "2005"
