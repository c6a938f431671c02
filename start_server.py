#!/usr/bin/env python3
"""
LinkPage Server Startup Script

Applies database migrations and starts the API server.
"""

import os
import sys
import subprocess
from pathlib import Path


def setup_environment():
    """Make the src/ layout importable for this process and subprocesses."""
    project_root = Path(__file__).parent.absolute()
    src_path = project_root / "src"

    if not src_path.exists():
        print(f"❌ Error: src directory not found at {src_path}")
        print("Make sure you're running this script from the project root directory")
        sys.exit(1)

    src_str = str(src_path)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

    current_pythonpath = os.environ.get("PYTHONPATH", "")
    if src_str not in current_pythonpath:
        if current_pythonpath:
            os.environ["PYTHONPATH"] = f"{src_str}{os.pathsep}{current_pythonpath}"
        else:
            os.environ["PYTHONPATH"] = src_str

    os.environ.setdefault("LINKPAGE_DEBUG", "true")

    print(f"📁 Project root: {project_root}")
    print(f"🐍 Python executable: {sys.executable}")


def run_migrations():
    """Run database migrations to ensure schema is up to date."""
    if os.environ.get("LINKPAGE_REPOSITORY", "sqlalchemy") == "memory":
        print("ℹ️  In-memory repository selected, skipping migrations")
        return True

    print("🔧 Running database migrations...")
    try:
        subprocess.run(
            [sys.executable, "-m", "alembic", "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True,
        )
        print("✅ Database migrations completed successfully")
        return True
    except subprocess.CalledProcessError as e:
        print(f"❌ Migration failed: {e}")
        print(f"Stdout: {e.stdout}")
        print(f"Stderr: {e.stderr}")
        return False


def start_server():
    """Start the FastAPI server using uvicorn."""
    from linkpage.config import get_config

    config = get_config()
    base_url = f"http://{config.server.host}:{config.server.port}"
    print("🚀 Starting LinkPage server...")
    print(f"📍 Server will be available at: {base_url}")
    print(f"📖 API docs: {base_url}/docs")
    print("")
    print("Press Ctrl+C to stop the server")
    print("=" * 50)

    try:
        subprocess.run(
            [
                sys.executable, "-m", "uvicorn",
                "linkpage.main:app",
                "--host", config.server.host,
                "--port", str(config.server.port),
                "--reload",  # Auto-restart on code changes
            ],
            check=True,
            env=os.environ.copy(),
        )
    except KeyboardInterrupt:
        print("\n👋 Server stopped by user")
    except subprocess.CalledProcessError as e:
        print(f"❌ Server failed to start: {e}")
        return False

    return True


def main():
    """Main entry point."""
    print("🔗 LinkPage - Server Startup")
    print("=" * 40)

    setup_environment()

    if not run_migrations():
        print("❌ Cannot start server without database migrations")
        sys.exit(1)

    if not start_server():
        sys.exit(1)


if __name__ == "__main__":
    main()
