import logging
import os
from dotenv import load_dotenv

load_dotenv()

api_key = os.getenv("GOOGLE_API_KEY")

MODEL_NAME = os.getenv("POEM_MODEL_NAME", "gemini-2.0-flash")
TEMPERATURE = float(os.getenv("POEM_TEMPERATURE", "0.7"))
# Seconds; enforced by the Gemini client, the flow itself has no deadline
TIMEOUT = float(os.getenv("POEM_TIMEOUT", "60"))
MAX_UPLOAD_BYTES = int(os.getenv("POEM_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
LOG_LEVEL = os.getenv("POEM_LOG_LEVEL", "INFO")

DEFAULT_LANGUAGE = "English"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging for the app entry point."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
