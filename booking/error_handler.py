"""
Centralized error handling for the booking wizard
Maps failures to the banner a guest sees and logs them at the right level
"""
from tracking import t

import logging
from typing import Optional

from reservations.api import ApiError

from . import messages
from .errors import BookingError, CapacityError
from .state import WizardState, WizardStep


class ErrorHandler:
    """
    Centralized error handling for the booking wizard

    Expected failures (validation, capacity, refused submissions) are logged
    as warnings; anything else is logged with its traceback. The wizard never
    leaves an interactive state because of an error.
    """

    @staticmethod
    def banner_for(error: Exception) -> str:
        """Text of the step banner for ``error``."""
        t('booking.error_handler.ErrorHandler.banner_for')
        if isinstance(error, BookingError):
            return error.message or messages.SUBMISSION_FALLBACK
        if isinstance(error, ApiError):
            if error.is_transport_failure:
                return messages.NETWORK_RETRY
            return error.message or messages.SUBMISSION_FALLBACK
        return messages.SUBMISSION_FALLBACK

    @staticmethod
    def handle_submission_error(state: WizardState, error: Exception) -> Optional[WizardStep]:
        """
        Record a failed submission on ``state``

        Returns the step the wizard should move to, or ``None`` to stay on the
        guest-info step.
        """
        t('booking.error_handler.ErrorHandler.handle_submission_error')
        logger = logging.getLogger('ErrorHandler')

        state.step_error = ErrorHandler.banner_for(error)

        if isinstance(error, CapacityError):
            logger.warning(f"Submission refused for capacity - Area: {state.selection.area_id}")
            return WizardStep.AREA

        if isinstance(error, (BookingError, ApiError)):
            logger.warning(f"Submission failed: {type(error).__name__}: {error}")
            return None

        logger.error(f"Unexpected submission error: {type(error).__name__}: {error}", exc_info=True)
        return None

    @staticmethod
    def handle_load_error(resource: str, error: ApiError, fallback: str) -> str:
        """Log a failed listing fetch and return the message to show."""
        t('booking.error_handler.ErrorHandler.handle_load_error')
        logger = logging.getLogger('ErrorHandler')
        logger.warning(f"Failed to load {resource} (HTTP {error.status}): {error.message}")
        return fallback
