#!/usr/bin/env python3
"""
Server runner for the statement ingestion service.

    python run.py                 # uvicorn with --reload
    python run.py --production    # gunicorn + uvicorn workers, see gunicorn_conf.py
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent
venv_bin = project_root / ".venv" / "bin"

APP = "statement_ingest.main:app"


def _executable(name: str) -> str:
    candidate = venv_bin / name
    return str(candidate) if candidate.exists() else name


def run_development(port: int):
    print("Starting Statement Ingestion server...")
    print(f"Server will be available at: http://localhost:{port}")
    print("Press Ctrl+C to stop")

    cmd = [
        _executable("python"), "-m", "uvicorn", APP,
        "--host", "0.0.0.0",
        "--port", str(port),
        "--reload",
    ]
    try:
        subprocess.run(cmd, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nShutting down server...")


def run_production():
    print("Starting Statement Ingestion (Production Mode)")
    print(f"Config: gunicorn_conf.py, database: {os.getenv('DATABASE_URL', 'default sqlite')}")

    # Replace the current process so systemd tracks gunicorn directly
    gunicorn = _executable("gunicorn")
    os.chdir(project_root)
    os.execvp(gunicorn, [gunicorn, "-c", "gunicorn_conf.py", APP])


def main():
    parser = argparse.ArgumentParser(description="Run the statement ingestion API")
    parser.add_argument("--production", action="store_true", help="Run under gunicorn")
    parser.add_argument("--port", type=int, default=8000, help="Development server port (default: 8000)")
    args = parser.parse_args()

    if args.production:
        run_production()
    else:
        run_development(args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
