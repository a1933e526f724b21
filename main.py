#!/usr/bin/env python3
"""
CareDraft Export API - main application
"""

import os

import uvicorn
from dotenv import load_dotenv

# Load environment before importing application modules that read env
_here = os.path.dirname(os.path.abspath(__file__))
_env_path = os.path.join(_here, ".env")
if os.path.exists(_env_path):
    load_dotenv(dotenv_path=_env_path)
else:
    load_dotenv()

from core.app import create_app  # noqa: E402

app = create_app()


def main():
    """Main entry point"""
    environment = os.getenv("ENVIRONMENT", "production")
    port = int(os.getenv("PORT", "8000"))

    if environment == "production":
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=port,
            workers=int(os.getenv("WORKERS", "1") or 1),
            log_level="info",
            access_log=True,
            reload=False,
            server_header=False,
            date_header=False,
        )
    else:
        uvicorn.run(
            "main:app",
            host="127.0.0.1",
            port=port,
            log_level="debug",
            reload=True,
        )


if __name__ == "__main__":
    main()
