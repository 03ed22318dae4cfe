"""
Configuración de logging del proyecto.

Todos los módulos usan logging.getLogger(__name__) bajo el logger raíz
"gridtraffic"; esta función le agrega los handlers de consola y archivo.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .config import LoggingConfig

ROOT_LOGGER_NAME = "gridtraffic"


def setup_logging(level: Optional[Union[str, int]] = None,
                  log_file: Optional[Union[str, Path]] = None,
                  log_format: str = LoggingConfig.LOG_FORMAT) -> logging.Logger:
    """
    Configura el logger del paquete.

    Puede llamarse más de una vez: los handlers previos se reemplazan.

    Args:
        level: Nivel de logging (default: LoggingConfig.LOG_LEVEL)
        log_file: Archivo de log opcional (además de la consola)
        log_format: Formato de los mensajes

    Returns:
        logging.Logger: Logger raíz del paquete
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level if level is not None else LoggingConfig.LOG_LEVEL)

    # Evitar handlers duplicados
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
