#!/usr/bin/env python3
"""
Entry point for the rfs client console.

Starts the Streamlit UI (ui/app.py). Installed as the `rfs-ui` script.
"""

import sys
import os
import subprocess
import logging

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("rfs-client")

APP_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'ui', 'app.py')


def build_streamlit_command(host='127.0.0.1', port=8501):
    return [
        sys.executable, '-m', 'streamlit',
        'run',
        APP_PATH,
        f'--server.port={port}',
        f'--server.address={host}',
        '--logger.level=info',
        '--browser.gatherUsageStats=false'
    ]


def start_streamlit_client(host='127.0.0.1', port=8501):
    """
    Start the Streamlit client UI.

    Args:
        host: Host to bind Streamlit to
        port: Port to expose Streamlit on
    """
    logger.info(f"Starting Streamlit client UI on {host}:{port}...")
    cmd = build_streamlit_command(host, port)

    try:
        return subprocess.run(cmd, check=False).returncode
    except KeyboardInterrupt:
        logger.info("Client UI stopped")
        return 0


def main():
    host = os.getenv('RFS_UI_HOST', '127.0.0.1')
    port = int(os.getenv('RFS_UI_PORT', '8501'))
    sys.exit(start_streamlit_client(host, port))


if __name__ == '__main__':
    main()
