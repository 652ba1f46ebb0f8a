#!/usr/bin/env python3
"""
TabWriter API - application entry point
"""

import os

import uvicorn

from tabwriter.core.app import create_app
from tabwriter.core.config import get_environment

app = create_app()


def main():
    """Main entry point"""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    if get_environment() == "production":
        uvicorn.run(
            "tabwriter.main:app",
            host=host,
            port=port,
            workers=int(os.getenv("WORKERS", "1") or 1),
            log_level="info",
            access_log=True,
            reload=False,
            server_header=False,
        )
    else:
        uvicorn.run(
            "tabwriter.main:app",
            host=host,
            port=port,
            reload=True,
            log_level="debug",
        )


if __name__ == "__main__":
    main()
