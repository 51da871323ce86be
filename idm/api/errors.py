"""Error handlers mapping DAO exceptions to JSON responses."""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from idm.core.exceptions import (
    ExceededMaximumAllowedResultsError,
    GroupNotFoundError,
    InvalidGroupError,
    InvalidPasswordError,
    InvalidUserError,
    ProviderOperationError,
    ReadOnlyDaoError,
    UnsupportedOperationError,
    UserAlreadyExistsError,
    UserNotFoundError,
)

# Flask uses the handler of the closest class in the exception's MRO
ERROR_STATUS = (
    (UserNotFoundError, 404, "Not Found"),
    (GroupNotFoundError, 404, "Not Found"),
    (InvalidPasswordError, 400, "Bad Request"),
    (InvalidUserError, 400, "Bad Request"),
    (UserAlreadyExistsError, 409, "Conflict"),
    (ReadOnlyDaoError, 403, "Forbidden"),
    (ExceededMaximumAllowedResultsError, 422, "Unprocessable Entity"),
    (UnsupportedOperationError, 501, "Not Implemented"),
    (ProviderOperationError, 502, "Bad Gateway"),
    (InvalidGroupError, 400, "Bad Request"),
)


def error_response(status: int, error: str, message: str):
    return jsonify({"error": error, "message": message}), status


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    for exc_class, status, label in ERROR_STATUS:
        def handler(error, status=status, label=label):
            if status >= 500:
                app.logger.error("%s: %s", label, error, exc_info=error)
            else:
                app.logger.info("%s: %s", label, error)
            return error_response(status, label, str(error))

        app.register_error_handler(exc_class, handler)

    @app.errorhandler(HTTPException)
    def http_error(error):
        """Render HTTP errors as JSON."""
        return error_response(error.code or 500, error.name, error.description or "")

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        if isinstance(error, HTTPException):
            return http_error(error)
        app.logger.error("Unhandled exception: %s", error, exc_info=True)
        return error_response(500, "Internal Server Error", "An unexpected error occurred")
