#!/usr/bin/env python3
"""
Entry point for the SongWars service.

Usage:
    python run.py                    # Run the service (default)
    python run.py serve              # Run the service explicitly

Environment Variables:
    FLASK_ENV: development or production (default: development)
    PORT: Port to run on (default: 5000)
    LOG_LEVEL: Logging level (default: INFO)
    DATABASE_URL: SQLAlchemy database URL (default: sqlite:///songwars.db)
"""
import logging
import os
import sys


def setup_logging():
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )


def run_service():
    """Run the HTTP + Socket.IO service."""
    from songwars.app import create_app
    
    setup_logging()
    app = create_app()
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'
    
    logging.getLogger(__name__).info(f"Starting SongWars on port {port}...")
    app.socketio.run(app, host='0.0.0.0', port=port, debug=debug, allow_unsafe_werkzeug=True)


if __name__ == '__main__':
    mode = sys.argv[1] if len(sys.argv) > 1 else 'serve'
    
    if mode == 'serve':
        run_service()
    else:
        print(f"Unknown mode: {mode}")
        print("Usage: python run.py [serve]")
        sys.exit(1)
