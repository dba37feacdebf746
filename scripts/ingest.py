import asyncio
import logging
import sys

from dotenv import load_dotenv
load_dotenv()

from knowhow_rag.config import Settings
from knowhow_rag.core.errors import IngestionError
from knowhow_rag.wiring import build_services


async def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    services = await build_services(Settings())
    try:
        total = await services.ingestion.ingest_all()
    except IngestionError as e:
        print(f"Ingestion failed: {e}", file=sys.stderr)
        return 1
    finally:
        await services.close()

    print(f"Done! Stored {total} segments.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
