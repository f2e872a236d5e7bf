#!/usr/bin/env python3
"""
Pantry Production Startup Script
Starts the API server with settings taken from the environment / .env
"""

import logging
import os

import uvicorn


def start_production_server():
    """Start the production server"""
    port = int(os.getenv("PORT", "8000"))
    logging.info("Starting pantry API on port %s (docs at /docs)", port)

    uvicorn.run(
        "pantry.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        workers=int(os.getenv("WEB_CONCURRENCY", "2")),
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    start_production_server()
