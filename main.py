"""brevity - small-context research agent

Simple CLI for answering questions from web search.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from brevity.agents.orchestrator import ResearchOrchestrator
from brevity.config import settings
from brevity.errors import ResearchError
from brevity.services.logger import configure_logging


async def run_research(
    query: str,
    *,
    strategy: str | None = None,
    max_iterations: int | None = None,
    knowledge: str = "",
    timeout: float | None = None,
    debug: bool = False,
) -> int:
    """Answer the given query and print the result."""
    print(f"Research query: {query}")
    print("-" * 50)

    overrides = {"strategy": strategy, "max_iterations": max_iterations, "debug": debug or None}
    orchestrator = ResearchOrchestrator.from_settings(
        **{key: value for key, value in overrides.items() if value is not None}
    )
    print(f"[*] Strategy: {orchestrator.strategy}")

    try:
        result = await orchestrator.answer(query, knowledge=knowledge, timeout=timeout)
    except asyncio.TimeoutError:
        print(f"\n[!] Error: timed out after {timeout}s")
        return 1
    except ResearchError as exc:
        print(f"\n[!] Error: {exc}")
        return 1

    print(f"\n{'='*50}")
    print("ANSWER:")
    print(f"{'='*50}")
    print(result.answer)
    print(f"\n   Cost: ${result.cost:.6f}")
    if result.warning:
        print(f"   Warning: {result.warning}")
    if debug:
        print(f"\n{'='*50}")
        print("KNOWLEDGE:")
        print(f"{'='*50}")
        print(result.knowledge)
    return 0


def main():
    parser = argparse.ArgumentParser(description="brevity research agent")
    parser.add_argument("--query", "-q", required=True, help="Question to answer")
    parser.add_argument("--strategy", "-s", help="scratchpad or graph-reader (default: from config)")
    parser.add_argument("--max-iterations", type=int, help="Scratchpad loop budget")
    parser.add_argument("--knowledge-file", type=Path, help="Knowledge from an earlier run to start from")
    parser.add_argument("--timeout", type=float, help="Give up after this many seconds")
    parser.add_argument("--debug", action="store_true", help="Log full prompts and responses")

    args = parser.parse_args()

    configure_logging(level="DEBUG" if args.debug else settings.app_log_level)
    knowledge = args.knowledge_file.read_text(encoding="utf-8") if args.knowledge_file else ""

    sys.exit(
        asyncio.run(
            run_research(
                args.query,
                strategy=args.strategy,
                max_iterations=args.max_iterations,
                knowledge=knowledge,
                timeout=args.timeout,
                debug=args.debug,
            )
        )
    )


if __name__ == "__main__":
    main()
