# backend/opsdb/serve.py
"""
Run the API with uvicorn.

    python -m opsdb.serve

Environment: HOST, PORT, RELOAD, LOG_LEVEL, FORWARDED_ALLOW_IPS, SSL_*.
"""

import logging
import os
from typing import Dict, Optional

import uvicorn

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _ssl_options() -> Dict[str, Optional[str]]:
    options: Dict[str, Optional[str]] = {}
    for env_name, option in (
        ("SSL_CERTFILE", "ssl_certfile"),
        ("SSL_KEYFILE", "ssl_keyfile"),
        ("SSL_CA_CERTS", "ssl_ca_certs"),
        ("SSL_KEYFILE_PASSWORD", "ssl_keyfile_password"),
    ):
        value = os.getenv(env_name)
        if value:
            options[option] = value
    return options


def configure_logging(log_level: str) -> None:
    """uvicorn only configures its own loggers; give the app's module loggers a handler too."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload_enabled = os.getenv("RELOAD", "false").lower() in _TRUE_VALUES
    log_level = os.getenv("LOG_LEVEL", "info")
    forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")

    configure_logging(log_level)

    uvicorn.run(
        "opsdb.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level=log_level,
        proxy_headers=True,
        forwarded_allow_ips=forwarded_allow_ips,
        **_ssl_options(),
    )


if __name__ == "__main__":
    main()
