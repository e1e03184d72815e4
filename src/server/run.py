#!/usr/bin/env python
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from loguru import logger

if __name__ == "__main__":
    load_dotenv(Path.cwd() / ".env")
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger.remove()
    logger.add(sys.stderr, level=log_level)
    logger.info("Credential Issuance Service, start running!")
    logger.info(f"当前应用环境：{os.getenv('APP_ENV')}")

    from src.server.config import config

    uvicorn.run(
        "src.server.main:app",
        host=config.host,
        port=config.port,
        reload=os.getenv("APP_ENV", "").lower() == "dev",
        log_level=log_level.lower(),
    )
