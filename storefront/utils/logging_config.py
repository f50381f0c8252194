import logging
import os
import coloredlogs

def setup_logging():
    """
    Configures the global logging settings for the storefront service.
    Uses coloredlogs for readable terminal output.
    """
    # Level comes from .env, INFO when unset
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    # Unknown names fall back to INFO
    if not isinstance(getattr(logging, log_level, None), int):
        log_level = "INFO"

    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    coloredlogs.install(
        level=log_level,
        fmt=log_format,
        datefmt=date_format,
        level_styles={
            'debug': {'color': 'white', 'faint': True},
            'info': {'color': 'green'},
            'warning': {'color': 'yellow'},
            'error': {'color': 'red', 'bold': True},
            'critical': {'color': 'red', 'bold': True, 'background': 'white'},
        },
        field_styles={
            'asctime': {'color': 'cyan'},
            'name': {'color': 'blue'},
            'levelname': {'color': 'magenta', 'bold': True},
        }
    )

    # SQLAlchemy echoes every statement at INFO; keep it quiet unless debugging
    if log_level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.info(f"Logging initialized at level: {log_level}")

def get_logger(name):
    """
    Returns a logger for a single module.
    Usage: logger = get_logger(__name__)
    """
    return logging.getLogger(name)
