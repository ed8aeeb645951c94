"""Domain errors shared by the collection, classification and service layers"""


class ServiceError(Exception):
    """Base error carrying a machine code and the HTTP status it maps to"""
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, code: str = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class NotAuthenticated(ServiceError):
    code = "NOT_AUTHENTICATED"
    status_code = 401


class NotFound(ServiceError):
    """Missing row, or a row owned by another parent"""
    code = "NOT_FOUND"
    status_code = 404


class InvalidInput(ServiceError):
    code = "INVALID_INPUT"
    status_code = 400


class NotConnected(ServiceError):
    """Child has no stored YouTube access/refresh token pair"""
    code = "YOUTUBE_NOT_CONNECTED"
    status_code = 400


class PreferencesMissing(ServiceError):
    code = "PREFERENCES_MISSING"
    status_code = 400


class UpstreamRequestFailed(ServiceError):
    code = "UPSTREAM_REQUEST_FAILED"
    status_code = 500


class UpstreamAuthExpired(ServiceError):
    code = "UPSTREAM_AUTH_EXPIRED"
    status_code = 500


class TokenRefreshFailed(UpstreamAuthExpired):
    code = "TOKEN_REFRESH_FAILED"


class YouTubeAuthExpired(UpstreamAuthExpired):
    code = "YOUTUBE_AUTH_EXPIRED"


class HistoryFetchFailed(UpstreamRequestFailed):
    code = "HISTORY_FETCH_FAILED"


class OAuthError(UpstreamRequestFailed):
    code = "OAUTH_FAILED"


class ClassifierInvalidOutput(ServiceError):
    code = "CLASSIFIER_INVALID_OUTPUT"


class PersistenceFailed(ServiceError):
    code = "PERSISTENCE_FAILED"
