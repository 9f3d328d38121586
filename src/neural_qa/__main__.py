"""Command-line entry point.

Usage:
    python -m neural_qa ask "How many neurons does C. elegans have?" --level k5
    python -m neural_qa mutate AVAL knockout
    python -m neural_qa validate "GABA is an inhibitory neurotransmitter"
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from neural_qa.config.settings import with_overrides
from neural_qa.core.exceptions import ConfigError
from neural_qa.core.logging import setup_logging
from neural_qa.core.qa_client import NeuralQAClient
from neural_qa.core.schemas import MutationType


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="neural_qa", description=__doc__.splitlines()[0])
    parser.add_argument("--max-attempts", type=int, default=None, help="Override the retry budget")
    sub = parser.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Ask a free-text question")
    ask.add_argument("question")
    ask.add_argument("--level", choices=["pre-k", "k5", "middle", "high"], default=None)

    mutate = sub.add_parser("mutate", help="Predict the effect of a synapse mutation")
    mutate.add_argument("target")
    mutate.add_argument("kind", choices=[m.value for m in MutationType])

    validate = sub.add_parser("validate", help="Validate a claim against reference data")
    validate.add_argument("claim")
    return parser


async def _run(args: argparse.Namespace, client: NeuralQAClient) -> dict:
    if args.command == "ask":
        context = {"user_level": args.level} if args.level else None
        response = await client.ask_question(args.question, context)
        return response.to_wire()
    if args.command == "mutate":
        response = await client.query_mutation(args.target, args.kind)
        return response.to_wire()
    validation = await client.validate_claim(args.claim)
    return validation.model_dump(by_alias=True, exclude_none=True)


def main(argv: Optional[List[str]] = None, client: Optional[NeuralQAClient] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging()
    if client is None:
        try:
            settings = (
                with_overrides(max_attempts=args.max_attempts)
                if args.max_attempts is not None
                else None
            )
            client = NeuralQAClient(settings)
        except ConfigError as exc:
            parser.error(exc.message)
    result = asyncio.run(_run(args, client))
    print(json.dumps(result, indent=2, ensure_ascii=False))
    if client.error:
        print(f"warning: {client.error}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
