"""Typed failures raised by the service layer.

Each error is a werkzeug HTTP exception, so flask-restx renders it as
``{"message": ...}`` with the matching status code and routes never need to
translate service failures by hand.
"""
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, NotFound, Unauthorized


class ValidationError(BadRequest):
    """Malformed or out-of-range input."""


class NotFoundError(NotFound):
    """A referenced entity does not exist."""


class AuthorizationError(Forbidden):
    """The caller lacks rights over the entity."""


class AuthenticationError(Unauthorized):
    """Credentials are missing or wrong."""


class ConflictError(Conflict):
    """A state precondition does not hold, e.g. a pet is no longer available."""

    def __init__(self, description=None, pet_ids=None):
        super().__init__(description)
        self.pet_ids = list(pet_ids or [])
        self.data = {'message': self.description}
        if self.pet_ids:
            self.data['pet_ids'] = self.pet_ids
