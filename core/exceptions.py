from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("capstone")


class TeamFormationError(Exception):
    """
    Base class for every failure a team-formation operation can report.

    Each subclass carries a stable ``code`` (returned to callers in the
    result envelope) and the HTTP status the API layer answers with.
    """
    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The operation could not be completed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TeamFormationError):
    code = "validation_error"
    default_message = "Invalid request."


class DuplicateError(TeamFormationError):
    code = "duplicate"
    status_code = status.HTTP_409_CONFLICT
    default_message = "An invitation has already been sent to this email address for this team."


class CapacityError(TeamFormationError):
    code = "capacity"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Team is at maximum capacity."


class NotFoundError(TeamFormationError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class AlreadyRespondedError(TeamFormationError):
    """Never surfaced as a failure: operations downgrade it to an idempotent success."""
    code = "already_responded"
    status_code = status.HTTP_200_OK
    default_message = "Invitation has already been responded to."


class ProjectAlreadyAssignedError(TeamFormationError):
    code = "project_already_assigned"
    status_code = status.HTTP_409_CONFLICT
    default_message = (
        "This project has already been assigned to another team. "
        "Please select a different project."
    )


class NoCapacityError(TeamFormationError):
    code = "no_capacity"
    status_code = status.HTTP_409_CONFLICT
    default_message = "No available faculty found."


class StoreError(TeamFormationError):
    code = "store_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The data store is unavailable. Please try again."


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    if isinstance(exc, TeamFormationError):
        return Response(
            {
                "success": False,
                "message": exc.message,
                "error": exc.code,
            },
            status=exc.status_code,
        )

    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": response.data,
            },
            status=response.status_code,
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
