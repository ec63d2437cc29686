"""Entry point for the StockSense simulator backend."""
import logging

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from stocksense.config import get_settings

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = get_settings()
    uvicorn.run("stocksense.main:app", host=settings.HOST, port=settings.PORT)
