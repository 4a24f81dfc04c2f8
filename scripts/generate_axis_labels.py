#!/usr/bin/env python3
"""
Axis label utility.

Manages the visualised word set and generates or refreshes the labels of
its three display axes from the command line.
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from embedaxes.core.config import (
    DEFAULT_STRATEGY_ID, ITERATION_COUNT, OUTPUTS_PER_PROMPT,
    get_completion_client, get_embedding_client, get_store,
)
from embedaxes.core.errors import EmbedAxesError
from embedaxes.agents.orchestrator import LabelWorkflowOrchestrator
from embedaxes.vector.strategies import default_registry


def print_progress(update):
    print(f"[stage {update.stage}] {update.progress:5.1f}% {update.message}")


def print_labels(result):
    print(f"Labels ({result.source}):")
    for axis in ("x", "y", "z"):
        print(f"  {axis.upper()}: {result.negative[axis]}  <->  {result.positive[axis]}")
    if result.dimension_indices is not None:
        print(f"  Dimensions: {result.dimension_indices}")


async def run(args) -> int:
    orchestrator = LabelWorkflowOrchestrator(
        store=get_store(),
        embedding_client=get_embedding_client(),
        completion_client=get_completion_client(),
        strategy_id=args.strategy,
    )

    if args.reset:
        orchestrator.reset()
        print("✓ Cleared candidates and axis labels")

    for word in args.add or []:
        if await orchestrator.add_word(word):
            print(f"✓ Added '{word}'")
        else:
            print(f"WARNING: Could not fetch a vector for '{word}'")

    for word in args.remove or []:
        if orchestrator.remove_word(word):
            print(f"✓ Removed '{word}'")
        else:
            print(f"WARNING: '{word}' is not in the word set")

    if args.generate:
        result = await orchestrator.generate(
            iteration_count=args.iterations,
            outputs_per_prompt=args.outputs,
            on_progress=print_progress,
        )
        if result is None:
            print(f"ERROR: Label generation failed: {orchestrator.last_error}")
            return 1
        print_labels(result)
    elif args.refresh:
        print_labels(orchestrator.refresh_from_cache())

    if args.project:
        for text, point in orchestrator.project_words():
            print(f"  {text:<20} x={point.x:+.3f} y={point.y:+.3f} z={point.z:+.3f}")

    if args.show:
        print(f"Words: {', '.join(orchestrator.words()) or '(none)'}")
        print_labels(orchestrator.current_labels())

    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Generate human-readable labels for embedding display axes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --add cat --add dog --add car     # Add words to the visualised set
  %(prog)s --generate --iterations 3         # Full run: generate, fetch, select
  %(prog)s --refresh                         # Re-rank cached candidates, no network
  %(prog)s --project                         # Print 3D coordinates of the words
  %(prog)s --list-strategies

Environment variables:
- OPENAI_API_KEY=... (required for the openai providers)
- EMBED_PROVIDER=openai|ollama|sentence_transformers|hash
- COMPLETION_PROVIDER=openai|ollama
- EMBEDAXES_DB_PATH=./data/embedaxes.db
        """
    )

    parser.add_argument("--add", "-a", action="append", metavar="WORD", help="Add a word to the set")
    parser.add_argument("--remove", "-r", action="append", metavar="WORD", help="Remove a word from the set")
    parser.add_argument("--generate", "-g", action="store_true", help="Run the full label workflow")
    parser.add_argument("--refresh", action="store_true", help="Recompute labels from cached data only")
    parser.add_argument("--reset", action="store_true", help="Clear candidates and labels before anything else")
    parser.add_argument("--project", "-p", action="store_true", help="Print projected word coordinates")
    parser.add_argument("--show", "-s", action="store_true", help="Show the word set and current labels")
    parser.add_argument("--strategy", default=DEFAULT_STRATEGY_ID, help="Dimension reduction strategy id")
    parser.add_argument("--iterations", type=int, default=ITERATION_COUNT, help="Concurrent completion calls")
    parser.add_argument("--outputs", type=int, default=OUTPUTS_PER_PROMPT, help="Candidates per completion call")
    parser.add_argument("--list-strategies", action="store_true", help="List dimension reduction strategies")

    args = parser.parse_args()

    if args.list_strategies:
        for strategy in default_registry.list_strategies():
            print(f"{strategy['id']:<24} {strategy['name']} - {strategy['description']}")
        return 0

    try:
        return asyncio.run(run(args))
    except EmbedAxesError as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
