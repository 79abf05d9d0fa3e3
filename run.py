#!/usr/bin/env python3
"""
Concurrent Banking Service Entry Point

Starts the FastAPI server wrapping the account core.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from bank_core.api import run_server
from bank_core.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("🏦 Starting Concurrent Banking Service...")
    print("🔒 Per-account locks with ordered transfer locking")
    print("💰 All amounts use 2-decimal Decimal with banker's rounding")
    print(f"🌐 API available at: http://localhost:{config.api_port}")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server()
    except KeyboardInterrupt:
        print("\n👋 Shutting down Concurrent Banking Service...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
