# config logging
import logging, sys
import structlog

def setup_logging(level: str = "INFO"):
    # stdout carries tables and exports; logs go to stderr
    lvl = logging.getLevelName(level.upper())
    structlog.configure(
        processors=[structlog.processors.TimeStamper(fmt="iso"),
                    structlog.processors.add_log_level,
                    structlog.processors.JSONRenderer()],
        wrapper_class=structlog.make_filtering_bound_logger(lvl if isinstance(lvl, int) else logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
    return structlog.get_logger()
