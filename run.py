# FILE: run.py
# DESCRIPTION: Run the Kontrak Digital application (production entrypoint for Gunicorn).

"""
Entrypoint for the Kontrak Digital application.
Used by Gunicorn to start the app server; `python run.py` starts the
Flask development server instead.
"""

import os
from kontrak import create_app
from kontrak.logging_config import configure_logging

# Configure logging first
logger = configure_logging(
    name="kontrak",
    logfile="kontrak.log",
    level=None  # Will use LOG_LEVEL from .env if present
)

# Create the Flask application
app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", "3000"))
    logger.info(f"Kontrak Digital server running on port {port}")
    app.run(host="0.0.0.0", port=port)
