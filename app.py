#!/usr/bin/env python3

import logging

import uvicorn

from backend.lifesync.core.config import settings

if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("backend.lifesync.main:app", host='0.0.0.0', port=settings.PORT, log_config=None)
