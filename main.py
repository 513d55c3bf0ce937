#!/usr/bin/env python3
"""
Resilience Gateway API - Production Entry Point
"""

import uvicorn
from src.api.app import create_application

app = create_application()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        log_level="info",
        access_log=True,
    )
