# Error taxonomy shared by the REST routes and the socket gateway
# Routes turn these into JSON responses, the gateway into `error` events.


class ChatError(Exception):
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class Unauthenticated(ChatError):
    # Missing, malformed or expired credential
    status_code = 401


class ValidationFailed(ChatError):
    status_code = 400


class AuthorizationFailed(ChatError):
    # Authenticated, but not allowed to do this
    status_code = 403


class NotFound(ChatError):
    status_code = 404


class Conflict(ChatError):
    status_code = 409


class BusinessRuleViolation(ChatError):
    status_code = 400


class PersistenceFailed(ChatError):
    # Store unavailable, timed out, or the write was rejected
    status_code = 503
