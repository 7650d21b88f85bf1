#!/usr/bin/env python3
"""
Gadget Container Startup Script
Serves the FastAPI app with uvicorn.
"""

import os
import sys
from pathlib import Path

import uvicorn


def main():
    """Main startup function."""
    project_root = Path(__file__).parent.parent
    os.chdir(project_root)
    sys.path.insert(0, str(project_root))

    host = os.environ.get("WEB_HOST", "0.0.0.0")
    port = int(os.environ.get("WEB_PORT", "8080"))

    print("Starting Gadget Container...")
    print(f"Web server binding to: {host}:{port}")

    uvicorn.run("web_api.server:app", host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
