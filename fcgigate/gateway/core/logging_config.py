from fcgigate.common.core.logging_config import setup_logging as common_setup_logging

from ..config import GatewayConfig


def setup_logging(gateway_config: GatewayConfig):
    """
    Load the YAML config and initialize logging.
    DEBUG forces the DEBUG level regardless of LOG_LEVEL.
    """
    level = "DEBUG" if gateway_config.DEBUG else gateway_config.LOG_LEVEL
    common_setup_logging(gateway_config.LOG_CONFIG_PATH, log_level=level)
