"""Skit Engine — dev launcher. Starts the API server in watch mode."""

import argparse
import os
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13015")


def main():
    parser = argparse.ArgumentParser(description="Skit Engine dev launcher")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", default=PORT, help=f"Port (default: {PORT})")
    parser.add_argument("--llm-url", default=None,
                        help="Text-completion backend URL (overrides LLM_URL)")
    parser.add_argument("--tts-url", default=None,
                        help="Speech service URL (overrides TTS_URL)")
    args = parser.parse_args()

    # Build env for the server process so it picks up the overrides
    env = os.environ.copy()
    if args.llm_url:
        env["LLM_URL"] = args.llm_url
    if args.tts_url:
        env["TTS_URL"] = args.tts_url

    print(f"Starting skit engine on http://localhost:{args.port} ...")
    proc = subprocess.Popen(
        ["uv", "run", "uvicorn", "skit_engine.app:app", "--reload",
         "--host", args.host, "--port", str(args.port)],
        cwd=ROOT, env=env,
    )
    try:
        sys.exit(proc.wait())
    except KeyboardInterrupt:
        print("\nShutting down...")
        proc.terminate()
        proc.wait()


if __name__ == "__main__":
    main()
