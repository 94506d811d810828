#!/usr/bin/env python3
"""
Bank Ledger Entry Point

Starts the interactive console by default, or the FastAPI server on port
8090 when called as ``run.py serve``.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from bank_ledger.config import get_config
from bank_ledger.logging_config import setup_logging


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    config = get_config()

    if argv and argv[0] == "serve":
        setup_logging(config.log_level, config.log_format, log_file=config.log_file)
        from bank_ledger.api import run_server

        print("🏦 Starting Bank Ledger API...")
        print(f"🌐 API available at: http://localhost:{config.api_port}")
        print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
        print()
        run_server()
        return 0

    if argv:
        print(f"Unknown command: {argv[0]}. Usage: run.py [serve]")
        return 2

    # Keep the menu readable: console logs go to the log file only
    if config.log_file:
        setup_logging(config.log_level, config.log_format, log_file=config.log_file)
    else:
        setup_logging("ERROR", config.log_format)

    from bank_ledger.console import BankConsole

    BankConsole().run()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n👋 Shutting down Bank Ledger...")
