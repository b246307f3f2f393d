from __future__ import annotations

import json
import logging
import socket

import uvicorn
from dotenv import load_dotenv

from catalog_server.config import Settings
from catalog_server.http import create_app


def _find_free_port(host: str) -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return int(sock.getsockname()[1])


def main() -> None:
    load_dotenv()
    settings = Settings()
    settings.ensure_dirs()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    token = settings.resolved_auth_token()
    port = settings.app_port if settings.app_port > 0 else _find_free_port(settings.app_host)

    runtime_info = {
        "port": port,
        "base_url": f"http://{settings.app_host}:{port}",
        "data_dir": str(settings.data_dir),
    }
    if settings.auth_token is None:
        # generated per process; the admin has no other way to learn it
        runtime_info["token"] = token
    print(json.dumps(runtime_info, ensure_ascii=True), flush=True)

    app = create_app(settings=settings, auth_token=token)
    uvicorn.run(app, host=settings.app_host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
