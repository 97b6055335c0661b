"""HP Tracker launcher. Binds the port, publishes it, and serves the API."""

import argparse
import json
import logging
import os
import socket
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "127.0.0.1")
PORT = os.getenv("PORT", "3000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")

logger = logging.getLogger("hp_tracker")


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind the listening socket; port 0 lets the OS assign one.

    The bound socket is handed to uvicorn as-is, so the port published in
    server.json is the one actually being served.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def write_discovery_file(data_dir: Path, host: str, port: int) -> Path:
    """Publish where the server listens so clients never have to scan for the port."""
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / "server.json"
    display_host = "localhost" if host in ("0.0.0.0", "127.0.0.1") else host
    info = {"host": host, "port": port, "url": f"http://{display_host}:{port}"}
    path.write_text(json.dumps(info, indent=2))
    return path


def main():
    parser = argparse.ArgumentParser(description="HP Tracker server")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--uploads-dir", type=Path, default=None,
                        help="Uploaded files directory (default: ./uploads)")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=int(PORT),
                        help="Port to bind; 0 picks a free port")
    parser.add_argument("--demo", action="store_true",
                        help="Replace characters and settings with demo data")
    args = parser.parse_args()

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Exported before import so the default app picks up the same dirs
    if args.data_dir:
        os.environ["DATA_DIR"] = str(args.data_dir.resolve())
    if args.uploads_dir:
        os.environ["UPLOADS_DIR"] = str(args.uploads_dir.resolve())

    import uvicorn

    from hp_tracker.app import DEFAULT_DATA_DIR, app

    if args.demo:
        from hp_tracker.demo import create_demo_data
        create_demo_data()

    sock = bind_socket(args.host, args.port)
    port = sock.getsockname()[1]
    data_dir = Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    discovery = write_discovery_file(data_dir, args.host, port)
    logger.info(f"Starting HP Tracker on http://{args.host}:{port} (discovery: {discovery})")
    server = uvicorn.Server(uvicorn.Config(app, log_level=LOG_LEVEL.lower()))
    server.run(sockets=[sock])


if __name__ == "__main__":
    main()
