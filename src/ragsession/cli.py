"""Interactive text client for a RAG backend."""

from __future__ import annotations

import argparse
import asyncio
import json
import shlex
import sys
from pathlib import Path
from typing import Sequence

from ragsession.config import get_settings
from ragsession.errors import BusyError, TransportError, ValidationError
from ragsession.metrics.observability import configure_logging
from ragsession.models import Flow, Message, Phase, Role, SearchResult
from ragsession.samples import SAMPLE_DOCUMENTS
from ragsession.session.orchestrator import SessionOrchestrator

HELP_TEXT = """Type a message to chat, or use a command:
  /search [--limit N] [--no-score] <query>   semantic search
  /embed <json> | /embed @path.json          index a JSON document
  /example                                   index the backend's example document
  /sample <name>                             index a bundled sample ({samples})
  /load-samples                              ask the backend to load its sample data
  /delete <document-id>                      delete a document from the index
  /doc <document-id>                         show a stored document
  /health                                    backend health
  /conversations                             list conversations
  /open <conversation-id>                    continue an existing conversation
  /forget <conversation-id>                  delete a conversation
  /new                                       start a new conversation
  /status                                    show flow status
  /quit                                      exit"""


def score_band(score: float) -> str:
    if score >= 0.8:
        return "high"
    if score >= 0.6:
        return "good"
    if score >= 0.4:
        return "fair"
    return "low"


def format_score(score: float | None) -> str:
    if score is None:
        return "n/a"
    return f"{score * 100:.1f}% ({score_band(score)})"


def _format_message(message: Message) -> str:
    if message.role is Role.USER:
        return f"you> {message.content}"
    lines = [f"assistant> {message.content}"]
    if message.sources:
        lines.append("Sources:")
        for index, source in enumerate(message.sources, start=1):
            kind = f" [{source.document_type}]" if source.document_type else ""
            lines.append(f"  [{index}] {source.document_id}{kind} {format_score(source.similarity_score)}")
    if message.usage:
        usage = message.usage
        model = "/".join(part for part in (usage.llm_provider, usage.llm_model) if part)
        suffix = f", {model}" if model else ""
        lines.append(f"({usage.tokens_used} tokens, {usage.processing_time_ms} ms{suffix})")
    return "\n".join(lines)


def _format_results(results: Sequence[SearchResult]) -> str:
    if not results:
        return "No documents found."
    lines = [f"{len(results)} result(s):"]
    for index, result in enumerate(results, start=1):
        text = result.text_representation.replace("\n", " ")
        if len(text) > 80:
            text = text[:77] + "..."
        lines.append(f"  {index}. {result.document_id} {format_score(result.similarity_score)} {text}")
    return "\n".join(lines)


def _format_failure(flow: Flow, orchestrator: SessionOrchestrator) -> str:
    return f"⚠️ {flow.value.capitalize()} failed: {orchestrator.store.status(flow).reason}"


def _format_status(orchestrator: SessionOrchestrator) -> str:
    store = orchestrator.store
    lines = [f"Conversation: {store.conversation_id or '(new)'} ({len(store.messages)} messages)"]
    for flow in Flow:
        status = store.status(flow)
        text = status.phase.value
        if status.phase is Phase.FAILED:
            text += f" - {status.reason}"
        lines.append(f"{flow.value}: {text}")
    return "\n".join(lines)


def _parse_search(args: list[str]) -> tuple[str, int | None, bool | None]:
    limit: int | None = None
    include_score: bool | None = None
    words: list[str] = []
    iterator = iter(args)
    for token in iterator:
        if token == "--limit":
            value = next(iterator, None)
            if value is None or not value.isdigit():
                raise ValidationError("--limit expects a number")
            limit = int(value)
        elif token == "--no-score":
            include_score = False
        else:
            words.append(token)
    return " ".join(words), limit, include_score


def _read_document_arg(raw: str) -> str:
    if raw.startswith("@"):
        path = Path(raw[1:]).expanduser()
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ValidationError(f"Cannot read {path}: {exc.strerror}") from exc
    return raw


async def _dispatch(orchestrator: SessionOrchestrator, command: str, rest: str) -> str:
    store = orchestrator.store
    if command == "help":
        return HELP_TEXT.format(samples=", ".join(sorted(SAMPLE_DOCUMENTS)))
    if command == "search":
        query, limit, include_score = _parse_search(shlex.split(rest))
        status = await orchestrator.search(query, limit=limit, include_score=include_score)
        if status.phase is Phase.FAILED:
            return _format_failure(Flow.SEARCH, orchestrator)
        return _format_results(store.search_results)
    if command in {"embed", "example", "sample"}:
        if command == "embed":
            status = await orchestrator.submit_document(_read_document_arg(rest))
        elif command == "example":
            status = await orchestrator.submit_example()
        else:
            status = await orchestrator.submit_sample(rest)
        if status.phase is Phase.FAILED:
            return _format_failure(Flow.EMBED, orchestrator)
        record = store.last_embed
        return (
            f"✅ Document processed: {record.document_id} "
            f"(hash {record.content_hash[:12]}, {record.embedding_dimension} dimensions)\n"
            f"{record.text_representation}"
        )
    if command == "load-samples":
        response = await orchestrator.load_sample_data()
        return f"✅ Loaded {response.summary.successful} sample records ({response.summary.failed} failed)"
    if command == "delete":
        if not rest:
            raise ValidationError("Usage: /delete <document-id>")
        if await orchestrator.delete_document(rest):
            return f"Deleted {rest}."
        return f"⚠️ Backend refused to delete {rest}."
    if command == "doc":
        if not rest:
            raise ValidationError("Usage: /doc <document-id>")
        return json.dumps(await orchestrator.get_document(rest), indent=2, ensure_ascii=False)
    if command == "health":
        health = await orchestrator.check_health()
        return f"Backend {health.status} (version {health.version or '?'}, uptime {health.uptime or 0:.0f}s)"
    if command == "conversations":
        conversations = await orchestrator.list_conversations()
        if not conversations:
            return "No conversations."
        return "\n".join(
            f"  {item.id} ({len(item.messages)} messages, updated {item.updated_at or '-'})" for item in conversations
        )
    if command == "open":
        if not rest:
            raise ValidationError("Usage: /open <conversation-id>")
        conversation = await orchestrator.open_conversation(rest)
        history = "\n".join(_format_message(message) for message in conversation.messages)
        return f"Opened {conversation.id}.\n{history}".rstrip()
    if command == "forget":
        if not rest:
            raise ValidationError("Usage: /forget <conversation-id>")
        if await orchestrator.delete_conversation(rest):
            return f"Deleted conversation {rest}."
        return f"⚠️ Backend refused to delete conversation {rest}."
    if command == "new":
        orchestrator.new_conversation()
        return "Started a new conversation."
    if command == "status":
        return _format_status(orchestrator)
    raise ValidationError(f"Unknown command /{command}. Type /help for a list.")


async def handle_line(orchestrator: SessionOrchestrator, line: str) -> str:
    """Run one line of user input and return the text to show."""

    line = line.strip()
    if not line:
        return ""
    try:
        if line.startswith("/"):
            command, _, rest = line[1:].partition(" ")
            return await _dispatch(orchestrator, command.lower(), rest.strip())
        status = await orchestrator.send_message(line)
        if status.phase is Phase.FAILED:
            return _format_failure(Flow.CHAT, orchestrator)
        return _format_message(orchestrator.store.messages[-1])
    except (ValidationError, BusyError) as exc:
        return f"⚠️ {exc}"
    except TransportError as exc:
        return f"⚠️ {exc.describe()}"


async def run(orchestrator: SessionOrchestrator, commands: Sequence[str] | None = None) -> int:
    try:
        if commands:
            for command in commands:
                print(await handle_line(orchestrator, command))
            return 0
        print("Connected to", orchestrator.client.transport.base_url, "- type /help for commands.")
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if line.strip().lower() in {"/quit", "/exit"}:
                break
            output = await handle_line(orchestrator, line)
            if output:
                print(output)
        return 0
    finally:
        await orchestrator.aclose()


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Chat with, search and feed a RAG backend.")
    parser.add_argument("--api-url", default=settings.api_url, help="Backend base URL")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.request_timeout_seconds,
        help="Per-request timeout in seconds",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    parser.add_argument(
        "-c",
        "--command",
        action="append",
        dest="commands",
        default=None,
        help="Run a line non-interactively; may be repeated",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level)
    settings = get_settings().model_copy(
        update={"api_url": args.api_url, "request_timeout_seconds": args.timeout, "log_level": args.log_level}
    )
    orchestrator = SessionOrchestrator.from_settings(settings)
    try:
        return asyncio.run(run(orchestrator, args.commands))
    except KeyboardInterrupt:  # pragma: no cover - interactive exit
        return 130


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
