"""
Logging setup for the ScoreRead service.
"""
import logging


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure the `scoreread` logger hierarchy.
    
    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        
    Returns:
        The configured package logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    
    logger = logging.getLogger("scoreread")
    logger.setLevel(level)
    logger.handlers.clear()
    
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)
    
    # Keep uvicorn access logs quieter than application logs
    logging.getLogger("uvicorn.access").setLevel(max(level, logging.WARNING))
    
    return logger
