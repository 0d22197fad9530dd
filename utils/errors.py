class ApiError(Exception):
    """
    an error the api reports back to the caller as json

    the message goes in the 'error' key, anything in payload is merged
    next to it (for example the list of missing question ids)
    """

    status_code = 400

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self):
        body = dict(self.payload)
        body['error'] = self.message
        return body


class NarrativeUnavailable(ApiError):
    """The language model is not configured on this server."""

    status_code = 503


class NarrativeError(ApiError):
    """The language model call failed."""

    status_code = 502
