"""
Start the scheduling API against a local data directory.

Usage:
    python scripts/run_local.py
    python scripts/run_local.py --data-path data --port 5050 --no-debug
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_ENTRYPOINT = REPO_ROOT / "backend" / "server.py"


def build_env(data_path: str | None, port: int | None, debug: bool) -> dict:
    env = dict(os.environ)
    if data_path:
        env["DATA_PATH"] = str(Path(data_path).resolve())
    if port:
        env["PORT"] = str(port)
    env["FLASK_DEBUG"] = "1" if debug else "0"
    return env


def run_local(data_path: str | None = None, port: int | None = None, debug: bool = True) -> int:
    if not BACKEND_ENTRYPOINT.is_file():
        print(
            f"[run-local] ERROR: backend entrypoint missing: {BACKEND_ENTRYPOINT}",
            file=sys.stderr,
            flush=True,
        )
        return 1

    env = build_env(data_path, port, debug)
    print(
        f"[run-local] Starting scheduler API on port {env.get('PORT', '5000')} "
        f"(data: {env.get('DATA_PATH', 'default')})",
        flush=True,
    )
    try:
        proc = subprocess.run([sys.executable, str(BACKEND_ENTRYPOINT)], cwd=str(REPO_ROOT), env=env)
        return proc.returncode
    except KeyboardInterrupt:
        print("\n[run-local] Stopped by user.", flush=True)
        return 130


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the scheduling API locally.")
    parser.add_argument("--data-path", help="Directory holding sections.json and study_plans.json")
    parser.add_argument("--port", type=int, help="Port to listen on (default: $PORT or 5000)")
    parser.add_argument("--no-debug", action="store_true", help="Disable the Flask debugger")
    args = parser.parse_args(argv)
    return run_local(args.data_path, args.port, debug=not args.no_debug)


if __name__ == "__main__":
    raise SystemExit(main())
