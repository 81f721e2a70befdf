#!/usr/bin/env python3
"""
Retail Accounting Entry Point

Starts the FastAPI server with host, port and logging taken from
RETAIL_ACCOUNTING_* settings.
"""

import sys

import uvicorn

from retail_accounting.config import get_config
from retail_accounting.logging_config import setup_logging


def run_server(host: str, port: int, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "retail_accounting.api:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )


if __name__ == "__main__":
    config = get_config()
    setup_logging(level=config.log_level, log_format=config.log_format, log_file=config.log_file)

    print("Starting Retail Accounting...")
    print(f"API available at: http://{config.api_host}:{config.api_port}")
    print(f"Documentation at: http://{config.api_host}:{config.api_port}/docs")

    try:
        run_server(host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        print("\nShutting down Retail Accounting...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
