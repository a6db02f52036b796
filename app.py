"""Main application module for feedstream."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

# Constants
PROJECT_ROOT = Path(__file__).resolve().parent
LOG_DIR = PROJECT_ROOT / "logs"
DEFAULT_PORT = 5000
DEFAULT_HOST = "127.0.0.1"

# Load environment variables before the pipeline reads its settings
load_dotenv(os.getenv("FEEDSTREAM_DOTENV", ".env"))

# Configure logging
LOG_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOG_DIR / 'feedstream.log'),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("feedstream")

from api_routes import register_routes  # noqa: E402
from feedstream import get_service  # noqa: E402

# Initialize Flask app
app = Flask(__name__)
CORS(app)

feed_service = get_service()
register_routes(app, feed_service)
logger.info(
    "feedstream ready: %d default feeds, social query %r",
    len(feed_service.settings.default_feeds),
    feed_service.settings.social_query,
)

__all__ = ["app", "feed_service"]
