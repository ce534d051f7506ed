"""
Domain errors for the tree workflow.

Each error carries the HTTP status and a short client-facing message; the
error middleware turns them into responses.
"""


class TreeWorkflowError(Exception):
    """Base class for business-rule violations."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TreeNotFoundError(TreeWorkflowError):
    status_code = 404

    def __init__(self, uid: str):
        super().__init__(f"Tree '{uid}' not found")
        self.uid = uid


class RecordSchemaError(TreeWorkflowError):
    """A stored document has a field of the wrong type."""

    status_code = 500

    def __init__(self, key: str, field: str, reason: str):
        super().__init__(f"Record '{key}' has an invalid '{field}' field: {reason}")
        self.key = key
        self.field = field


class ImageLimitExceededError(TreeWorkflowError):
    def __init__(self, remaining: int, limit: int):
        if remaining <= 0:
            message = f"Maximum of {limit} images already uploaded"
        else:
            message = f"You can upload only {remaining} more image(s)"
        super().__init__(message)
        self.remaining = remaining
        self.limit = limit


class ImageNotFoundError(TreeWorkflowError):
    status_code = 404

    def __init__(self, url: str):
        super().__init__("Image not found")
        self.url = url


class MissingTreeNameError(TreeWorkflowError):
    def __init__(self):
        super().__init__("Tree Name is required to generate ID")


class PublicIdExhaustedError(TreeWorkflowError):
    status_code = 409

    def __init__(self, name: str, attempts: int):
        super().__init__(f"Could not find a free public ID for '{name}' after {attempts} attempts")


class NoIdentificationResultsError(TreeWorkflowError):
    status_code = 404

    def __init__(self):
        super().__init__("No results found. Try another image.")


class AuthenticationError(TreeWorkflowError):
    status_code = 401


class AuthorizationError(TreeWorkflowError):
    status_code = 403


class VolunteerNotFoundError(TreeWorkflowError):
    status_code = 404

    def __init__(self, email: str):
        super().__init__("Volunteer not found")
        self.email = email


class PublicIdTakenError(TreeWorkflowError):
    status_code = 409

    def __init__(self, public_id: str):
        super().__init__(f"Public ID '{public_id}' is already in use")
        self.public_id = public_id
