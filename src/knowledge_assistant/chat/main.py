#!/usr/bin/env python3
"""
Console chat over the indexed documents.

Usage:
    knowledge-assistant "What are stroke prevention measures?"
    knowledge-assistant                 # interactive chat
    knowledge-assistant --offline ...   # built-in demo corpus, no network

Interactive commands: /clear, /sources, /quit
"""

import argparse
import asyncio
import sys
from typing import Optional

from knowledge_assistant.chat.formatter import ResponseFormatter
from knowledge_assistant.rag.errors import RAGError
from knowledge_assistant.rag.generator import StaticGenerator
from knowledge_assistant.rag.models import Configuration
from knowledge_assistant.rag.pipeline import QueryPipeline
from knowledge_assistant.utils.config import get_settings
from knowledge_assistant.utils.logger import setup_logger, get_logger
from knowledge_assistant.vectorstore.embedder import OllamaEmbedder
from knowledge_assistant.vectorstore.fakes import StaticEmbedder, StaticIndexClient

logger = get_logger()

OFFLINE_ANSWER = (
    "This is an offline demo answer. The retrieved excerpts are listed below as sources."
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Ask questions about your indexed documents"
    )
    parser.add_argument("question", nargs="*", help="Question to answer (omit for interactive chat)")
    parser.add_argument("--index", dest="index_name", help="Vector index name (default from settings)")
    parser.add_argument("--top-k", type=int, help="Number of document chunks to retrieve")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the built-in demo corpus and a canned answer instead of remote services"
    )
    return parser


def build_pipeline(offline: bool) -> QueryPipeline:
    """Wire the pipeline with either production or offline collaborators."""
    settings = get_settings()

    if offline:
        index_client = StaticIndexClient()
        generator = StaticGenerator(OFFLINE_ANSWER)
        return QueryPipeline(
            embedder=StaticEmbedder(),
            index_client_factory=lambda config: index_client,
            generator_factory=lambda config: generator,
            settings=settings,
        )

    return QueryPipeline(embedder=OllamaEmbedder(settings), settings=settings)


async def run(args: argparse.Namespace) -> int:
    formatter = ResponseFormatter()
    pipeline = build_pipeline(args.offline)

    overrides = {"index_name": args.index_name, "top_k": args.top_k}
    if args.offline:
        overrides.update(generative_api_key="offline", vector_api_key="offline")

    try:
        pipeline.configure(Configuration.from_settings(**overrides))
    except RAGError as e:
        print(f"❌ {e}", file=sys.stderr)
        print("Set GEMINI_API_KEY and QDRANT_API_KEY in your .env file, or use --offline.",
              file=sys.stderr)
        return 2

    try:
        if args.question:
            reply = await pipeline.ask(" ".join(args.question))
            print(formatter.format_conversation(pipeline.log.messages[-2:]))
            return 1 if reply is None or reply.is_error else 0

        return await _interactive(pipeline, formatter)
    finally:
        await pipeline.aclose()


async def _interactive(pipeline: QueryPipeline, formatter: ResponseFormatter) -> int:
    print(formatter.format_conversation(pipeline.log))

    while True:
        try:
            line = await asyncio.to_thread(input, "\n> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        command = line.strip()
        if not command:
            continue
        if command in ("/quit", "/exit"):
            return 0
        if command == "/clear":
            pipeline.reset()
            print(formatter.format_conversation(pipeline.log))
            continue
        if command == "/sources":
            print(formatter.format_sources(pipeline.log.latest_sources) or "No sources yet.")
            continue

        reply = await pipeline.ask(command)
        if reply is not None:
            print(formatter.format(reply))


def main(argv: Optional[list] = None) -> int:
    """Entry point for the console script."""
    args = build_parser().parse_args(argv)
    setup_logger()
    logger.info("Starting knowledge assistant"
                + (" (offline demo)" if args.offline else ""))

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
