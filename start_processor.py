import uvicorn
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Coloured logging BEFORE any other import that logs
from core.logger import setup_colored_logging
setup_colored_logging("processor")

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    port = int(os.getenv("PORT", 8080))
    host = os.getenv("HOST", "0.0.0.0")

    if not os.getenv("OPENAI_API_KEY"):
        logger.warning("OPENAI_API_KEY not set - document import disabled")

    logger.info(f"Starting Stock Processor on {host}:{port}")
    logger.info(f"Environment: {os.getenv('ENVIRONMENT', 'production')}")

    try:
        # Single worker: sessions live in process memory
        uvicorn.run(
            "api.main:app",
            host=host,
            port=port,
            workers=1,
            reload=False,
            log_level="info",
            access_log=True,
            use_colors=False  # colorlog handles colours
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
