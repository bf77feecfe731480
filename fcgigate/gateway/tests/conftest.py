import os

import pytest
from fastapi.testclient import TestClient

from fcgigate.gateway.config import GatewayConfig
from fcgigate.gateway.main import create_app

from .support import start_tcp_upstream


@pytest.fixture
def docroot(tmp_path):
    """
    Document root layout:
        index.php
        info.php
        readme.txt
        css/site.css
        img/logo.PNG
        favicon.ico
        blog/            (directory without index)
    """
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.php").write_text("<?php echo 'index';")
    (root / "info.php").write_text("<?php phpinfo();")
    (root / "readme.txt").write_text("plain text")
    (root / "css").mkdir()
    (root / "css" / "site.css").write_text("body { color: red; }")
    (root / "img").mkdir()
    (root / "img" / "logo.PNG").write_bytes(b"\x89PNG\r\n\x1a\n")
    (root / "favicon.ico").write_bytes(b"\x00\x00\x01\x00")
    (root / "blog").mkdir()
    return root


@pytest.fixture
def fastcgi_upstream():
    upstream = start_tcp_upstream()
    try:
        yield upstream
    finally:
        upstream.stop()


@pytest.fixture
def make_config(docroot, fastcgi_upstream):
    def _make(**overrides) -> GatewayConfig:
        values = {
            "WEB_ROOT": str(docroot),
            "INDEX_FILE": "index.php",
            "FASTCGI_UPSTREAM": fastcgi_upstream.address,
            "UPSTREAM_TIMEOUT": 5.0,
            "UVICORN_BIND_ADDR": "0.0.0.0:8080",
        }
        values.update(overrides)
        return GatewayConfig(_env_file=None, **values)

    return _make


@pytest.fixture
def make_client(make_config):
    def _make(**overrides) -> TestClient:
        return TestClient(create_app(make_config(**overrides)))

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    # Keep host configuration out of GatewayConfig defaults.
    for key in list(os.environ):
        if key in GatewayConfig.model_fields:
            monkeypatch.delenv(key, raising=False)
