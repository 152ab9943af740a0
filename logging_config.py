"""
Logging configuration for the Mané Mercado reservation client
Console plus rotating file handlers, with a dedicated log for the booking flow
"""

import os
import logging
import logging.handlers
from datetime import datetime
from typing import Optional

RESERVATION_LOGGERS = (
    'BookingWizard',
    'ReservationConflictManager',
    'ReservationSnapshotRepository',
    'ReservationLookup',
    'CheckInWatcher',
)

COMPONENT_LOGGERS = (
    'ReservationApiClient',
    'AvailabilityResolver',
    'CalendarProbe',
    'SubmissionFeedback',
    'CountdownTicker',
    'ErrorHandler',
    'Bootstrap',
)

_reservation_handler: Optional[logging.Handler] = None


def setup_logging(log_dir: str, production_mode: bool = False) -> None:
    """
    Set up logging with console, main, debug (development only), error and
    reservation handlers. Calling it again replaces the previous handlers.
    """
    global _reservation_handler

    os.makedirs(log_dir, exist_ok=True)

    main_log_file = os.path.join(log_dir, 'client.log')
    debug_log_file = os.path.join(log_dir, 'client_debug.log')
    error_log_file = os.path.join(log_dir, 'client_errors.log')
    reservation_log_file = os.path.join(log_dir, 'reservations.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING if production_mode else logging.DEBUG)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        main_log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    main_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(main_file_handler)

    if not production_mode:
        debug_file_handler = logging.handlers.RotatingFileHandler(
            debug_log_file,
            maxBytes=50*1024*1024,  # 50MB
            backupCount=3,
            encoding='utf-8'
        )
        debug_file_handler.setLevel(logging.DEBUG)
        debug_file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(debug_file_handler)

    error_file_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_file_handler)

    # Booking flow gets its own file, shared by the components that touch reservations
    reservation_handler = logging.handlers.RotatingFileHandler(
        reservation_log_file,
        maxBytes=20*1024*1024,  # 20MB
        backupCount=5,
        encoding='utf-8'
    )
    reservation_handler.setLevel(logging.INFO if production_mode else logging.DEBUG)
    reservation_handler.setFormatter(detailed_formatter)

    for name in RESERVATION_LOGGERS:
        logger = logging.getLogger(name)
        if _reservation_handler is not None:
            logger.removeHandler(_reservation_handler)
        logger.addHandler(reservation_handler)
        logger.setLevel(logging.INFO if production_mode else logging.DEBUG)
    if _reservation_handler is not None:
        _reservation_handler.close()
    _reservation_handler = reservation_handler

    for name in COMPONENT_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING if production_mode else logging.DEBUG)

    # Reduce noise from external libraries
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    root_logger.info("="*80)
    root_logger.info(f"Reservation client logging initialized - {datetime.now()}")
    root_logger.info(f"Production Mode: {'ON' if production_mode else 'OFF'}")
    root_logger.info(f"Main log: {main_log_file}")
    if not production_mode:
        root_logger.info(f"Debug log: {debug_log_file}")
    root_logger.info(f"Error log: {error_log_file}")
    root_logger.info(f"Reservations log: {reservation_log_file}")
    root_logger.info("="*80)

