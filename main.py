"""NPC Dialogue — dev launcher. Serves the session API with uvicorn."""

import argparse
import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13013")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def main():
    parser = argparse.ArgumentParser(description="NPC Dialogue dev server")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", type=int, default=int(PORT), help=f"Port (default: {PORT})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument("--offline", action="store_true",
                        help="Answer with canned replies instead of calling a model")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    configure_logging(args.verbose)

    # The app reads its settings from the environment, including under --reload
    if args.offline:
        os.environ["LLM_PROVIDER_FORMAT"] = "offline"

    print(f"Starting NPC dialogue server on http://localhost:{args.port} ...")
    uvicorn.run(
        "npc_dialogue.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
