from fcgigate.gateway.config import GatewayConfig
from fcgigate.gateway.core import logging_config


def test_setup_logging_passes_config_path_and_level(monkeypatch):
    captured = {}

    def fake_setup(config_path, log_level=None):
        captured["config_path"] = config_path
        captured["log_level"] = log_level

    monkeypatch.setattr(logging_config, "common_setup_logging", fake_setup)

    logging_config.setup_logging(
        GatewayConfig(_env_file=None, LOG_LEVEL="WARNING", LOG_CONFIG_PATH="/etc/log.yaml")
    )

    assert captured == {"config_path": "/etc/log.yaml", "log_level": "WARNING"}


def test_debug_forces_debug_level(monkeypatch):
    captured = {}
    monkeypatch.setattr(
        logging_config,
        "common_setup_logging",
        lambda config_path, log_level=None: captured.update(log_level=log_level),
    )

    logging_config.setup_logging(GatewayConfig(_env_file=None, DEBUG=True))

    assert captured["log_level"] == "DEBUG"
