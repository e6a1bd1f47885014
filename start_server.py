#!/usr/bin/env python3
"""
Startup script for the Mini Jira backend
"""

import logging

import uvicorn

from app.config.logging import configure_logging
from app.config.settings import AppConfig

logger = logging.getLogger(__name__)

def main():
    configure_logging()

    logger.info("Starting Mini Jira Backend Server...")
    logger.info(f"Host: {AppConfig.HOST}")
    logger.info(f"Port: {AppConfig.PORT}")
    logger.info(f"Reload: {AppConfig.RELOAD}")

    uvicorn.run(
        "main:app",
        host=AppConfig.HOST,
        port=AppConfig.PORT,
        reload=AppConfig.RELOAD,
        log_level=AppConfig.LOG_LEVEL.lower()
    )

if __name__ == "__main__":
    main()
