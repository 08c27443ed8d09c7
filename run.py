#!/usr/bin/env python3
"""
GoCash Collections Service Entry Point

Starts the FastAPI server with the collections API.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from gocash.api import run_server
from gocash.config import get_config


if __name__ == "__main__":
    config = get_config()

    print("💸 Starting GoCash Collections Service...")
    print(f"🗄️  Snapshot storage: {config.storage_url}")
    print(f"🔒 Authentication {'enabled' if config.auth_enabled else 'disabled'}")
    print(f"🤖 Advisor {'configured' if config.advisor_api_key else 'not configured'}")
    print(f"🌐 API available at: http://localhost:{config.api_port}")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            debug=False  # Set to True for development
        )
    except KeyboardInterrupt:
        print("\n👋 Shutting down GoCash...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
