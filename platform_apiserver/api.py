import sys
from collections.abc import Sequence

import structlog

from platform_apiserver import __version__

from .config import ServerConfig
from .config_factory import FlagsConfigFactory
from .logs import init_logging
from .validators import InvalidConfigValue, validate_config

logger = structlog.get_logger(__name__)


class ConfigValidationError(ValueError):
    def __init__(self, errors: Sequence[InvalidConfigValue]) -> None:
        super().__init__("; ".join(str(error) for error in errors))
        self.errors = list(errors)


def load_config(
    argv: Sequence[str] | None = None, defaults: ServerConfig | None = None
) -> ServerConfig:
    config = FlagsConfigFactory(argv, defaults=defaults).create()
    errors = validate_config(config)
    if errors:
        raise ConfigValidationError(errors)
    return config


def main(argv: Sequence[str] | None = None) -> None:  # pragma: no coverage
    init_logging()
    logger.info("Starting", version=__version__)
    try:
        config = load_config(argv)
    except ConfigValidationError as exc:
        for error in exc.errors:
            logger.error("Invalid config", field=error.field, error=str(error))
        sys.exit(1)
    logger.info("Loaded config: %r", config)
