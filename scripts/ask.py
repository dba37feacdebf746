import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv
load_dotenv()

from knowhow_rag.config import Settings
from knowhow_rag.core.errors import DatabaseServiceError, LLMServiceError
from knowhow_rag.wiring import build_services


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask a question against the indexed documentation.")
    parser.add_argument("question")
    parser.add_argument("--tag", action="append", dest="tags", default=None,
                        help="Only use segments carrying this tag (repeatable)")
    parser.add_argument("--web", action="store_true",
                        help="Allow blending in general knowledge")
    parser.add_argument("--debug-search", action="store_true",
                        help="Print raw nearest neighbours instead of answering")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


async def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    services = await build_services(Settings())
    try:
        if args.debug_search:
            for line in await services.retriever.debug_search(args.question):
                print(line)
            return 0

        answer = await services.rag.ask(
            args.question,
            include_web_content=args.web,
            tags=args.tags,
        )
    except (LLMServiceError, DatabaseServiceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await services.close()

    print(answer.answer)
    if answer.suggested_questions:
        print("\nYou might also ask:")
        for q in answer.suggested_questions:
            print(f"- {q}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
