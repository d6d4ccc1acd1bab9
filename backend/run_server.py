"""Entry point for running the booklog backend with uvicorn.

Usage:
    python run_server.py --port 8000 --web-dir /path/to/web/dist
"""

import argparse
import os


def main() -> None:
    parser = argparse.ArgumentParser(description="Family Booklog Backend")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Interface to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--web-dir", type=str, default=None, help="Path to built web app")
    args = parser.parse_args()

    if args.web_dir:
        os.environ["BOOKLOG_WEB_DIR"] = args.web_dir

    import uvicorn
    from booklog.main import app

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
