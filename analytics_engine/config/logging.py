"""
Logging configuration for the analytics engine.
Provides structured logging with different handlers and formatters.
"""

import logging
import logging.config
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from analytics_engine.config.settings import Settings, settings as default_settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields"""

    environment: str = default_settings.ENVIRONMENT

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        """Add custom fields to the log record"""
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = self.environment

        # Calculation context passed through `extra=`
        for key in ('metric_type', 'entity_id', 'granularity', 'method', 'operation'):
            if hasattr(record, key):
                log_record[key] = str(getattr(record, key))

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }


def build_logging_config(config: Settings) -> Dict[str, Any]:
    """Create the dictConfig mapping for the given settings"""
    CustomJsonFormatter.environment = config.ENVIRONMENT

    console_formatter = 'colored' if config.is_development() else 'standard'
    if config.LOG_JSON:
        console_formatter = 'json'

    handlers: Dict[str, Dict[str, Any]] = {
        'console': {
            'level': 'DEBUG' if config.DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': console_formatter,
        },
    }

    if config.LOG_TO_FILE:
        os.makedirs(config.LOG_DIR, exist_ok=True)
        handlers['file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(config.LOG_DIR, 'analytics.log'),
            'maxBytes': 10485760,  # 10MB
            'backupCount': 10,
            'formatter': 'standard',
            'encoding': 'utf8'
        }
        handlers['json_file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(config.LOG_DIR, 'analytics.json.log'),
            'maxBytes': 10485760,  # 10MB
            'backupCount': 10,
            'formatter': 'json',
            'encoding': 'utf8'
        }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': handlers,
        'loggers': {
            'analytics_engine': {
                'handlers': list(handlers),
                'level': config.LOG_LEVEL,
                'propagate': False
            },
        }
    }


def setup_logging(config: Optional[Settings] = None) -> logging.Logger:
    """Configure engine logging"""
    config = config or default_settings
    logging.config.dictConfig(build_logging_config(config))
    logger = logging.getLogger("analytics_engine")
    logger.info(f"Logging initialized with level: {config.LOG_LEVEL}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the engine namespace"""
    if not name.startswith("analytics_engine"):
        name = f"analytics_engine.{name}"
    return logging.getLogger(name)
