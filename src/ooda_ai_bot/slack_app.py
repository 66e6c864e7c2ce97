"""Slack Bolt handlers that route chat events to Vectara and post formatted answers.

Each handler depends only on the Vectara client and the formatter; none calls
another. Failures are caught here, logged in full and replaced by a generic
message for the user.
"""

import re
import uuid
from typing import Any, Protocol

from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp
from slack_sdk.web.async_client import AsyncWebClient

from .config import AppSettings
from .exceptions import ConfigurationError, EmptyInput, OodaBotError
from .formatting import format_reply
from .models import QueryResult
from .observability import bind_query_context, clear_query_context, get_logger

logger = get_logger(__name__)

MENTION_PATTERN = re.compile(r"<@[^>]+>")
HELLO_PATTERN = re.compile(r"hello", re.IGNORECASE)

ASK_USAGE = "Please provide a question. Usage: /ask your question here"
LOADING_TEXT = "Analyzing... Standby for results..."
PROCESSING_TEXT = "Processing your query..."
DM_ERROR_TEXT = "Error processing query. Please try again in a moment."
ASK_ERROR_TEXT = ":x: Error processing query. Please try again in a moment."
MENTION_ERROR_TEXT = "Sorry, I encountered an error processing your query. Please try again."
HELLO_DM_TEXT = "Hello there! I received your DM."


class QueryService(Protocol):
    async def query(self, question: str) -> QueryResult: ...


def extract_question(text: str | None, strip_mention: bool = False) -> str:
    """Pull the question out of a chat message.

    Raises:
        EmptyInput: Nothing is left after removing the bot mention and whitespace
    """
    text = text or ""
    if strip_mention:
        text = MENTION_PATTERN.sub("", text, count=1)
    question = text.strip()
    if not question:
        raise EmptyInput("No question text provided")
    return question


def loading_blocks(question: str) -> list[dict[str, Any]]:
    """Placeholder shown while the query runs."""
    return [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f":hourglass: *{LOADING_TEXT}*\n_Query: {question}_",
            },
        }
    ]


async def _answer(vectara: QueryService, question: str) -> str:
    logger.info("query_started", question=question[:200])
    result = await vectara.query(question)
    reply = format_reply(result)
    logger.info("query_answered", sources=len(result.sources), reply_chars=len(reply))
    return reply


async def handle_direct_message(message: dict[str, Any], say: Any, vectara: QueryService) -> None:
    """Answer questions sent to the bot by direct message."""
    text = message.get("text") if message else None
    if not text:
        return
    if message.get("channel_type") != "im" or message.get("subtype") == "bot_message":
        return
    # Greetings belong to handle_hello_message
    if HELLO_PATTERN.search(text):
        return

    bind_query_context(str(uuid.uuid4()), "direct_message")
    try:
        await say(f'Querying OODA AI with: "{text}"...')
        reply = await _answer(vectara, text)
        await say(text=reply, mrkdwn=True)
    except Exception:
        logger.exception("direct_message_failed")
        await say(DM_ERROR_TEXT)
    finally:
        clear_query_context()


async def _delete_placeholder(client: AsyncWebClient, channel_id: str, ts: str | None) -> None:
    if not ts:
        return
    try:
        await client.chat_delete(channel=channel_id, ts=ts)
    except Exception as e:
        logger.warning("placeholder_delete_failed", channel=channel_id, ts=ts, error=str(e))


async def handle_ask_command(command: dict[str, Any], ack: Any, respond: Any, client: AsyncWebClient, vectara: QueryService) -> None:
    """Handle /ask: acknowledge at once, show a placeholder, then replace it with the answer."""
    await ack()

    try:
        question = extract_question(command.get("text"))
    except EmptyInput:
        await respond(response_type="ephemeral", text=ASK_USAGE)
        return

    channel_id = command.get("channel_id")
    if not channel_id:
        raise OodaBotError("No channel ID provided")

    bind_query_context(str(uuid.uuid4()), "ask_command")
    try:
        loading = await client.chat_postMessage(channel=channel_id, text=LOADING_TEXT, blocks=loading_blocks(question))
        placeholder_ts = loading.get("ts")
        if not placeholder_ts:
            raise OodaBotError("Failed to get message timestamp from Slack")

        await respond(response_type="ephemeral", text=PROCESSING_TEXT)

        reply: str | None = None
        try:
            reply = await _answer(vectara, question)
        except Exception:
            logger.exception("ask_command_failed")

        await _delete_placeholder(client, channel_id, placeholder_ts)

        if reply is not None:
            try:
                await client.chat_postMessage(channel=channel_id, text=reply, mrkdwn=True, unfurl_links=False, unfurl_media=False)
                return
            except Exception:
                logger.exception("ask_reply_post_failed")

        await client.chat_postMessage(channel=channel_id, text=ASK_ERROR_TEXT, unfurl_links=False, unfurl_media=False)
    finally:
        clear_query_context()


async def handle_hello_command(command: dict[str, Any], ack: Any, say: Any) -> None:
    await ack()
    await say(f"Hello! You triggered {command.get('command')}")


async def handle_hello_message(message: dict[str, Any], say: Any) -> None:
    """Greet users who say hello in a DM, replying in thread."""
    if message.get("channel_type") != "im":
        return
    try:
        await say(text=HELLO_DM_TEXT, thread_ts=message.get("ts"))
    except Exception:
        logger.exception("hello_reply_failed")


async def handle_app_mention(event: dict[str, Any], say: Any, vectara: QueryService) -> None:
    """Answer questions addressed to the bot in a channel."""
    try:
        question = extract_question(event.get("text"), strip_mention=True)
    except EmptyInput:
        await say(f"Hello <@{event.get('user')}>! How can I help you?")
        return

    bind_query_context(str(uuid.uuid4()), "app_mention")
    try:
        await say(f'Processing query: "{question}"...')
        reply = await _answer(vectara, question)
        await say(text=reply, mrkdwn=True, unfurl_links=False, unfurl_media=False)
    except Exception:
        logger.exception("app_mention_failed")
        await say(MENTION_ERROR_TEXT)
    finally:
        clear_query_context()


async def handle_error(error: Exception, body: dict[str, Any] | None = None) -> None:
    """Global Bolt error handler."""
    logger.error(
        "slack_app_error",
        code=getattr(error, "code", None),
        message=str(error),
        error_type=type(error).__name__,
        payload_type=(body or {}).get("type"),
    )


def register_handlers(app: AsyncApp, vectara: QueryService) -> AsyncApp:
    """Attach every listener to ``app``. Listener argument names are how Bolt injects payloads."""

    async def on_hello_message(message: dict[str, Any], say: Any) -> None:
        await handle_hello_message(message, say)

    async def on_message(message: dict[str, Any], say: Any) -> None:
        await handle_direct_message(message, say, vectara)

    async def on_hello_command(command: dict[str, Any], ack: Any, say: Any) -> None:
        await handle_hello_command(command, ack, say)

    async def on_ask_command(command: dict[str, Any], ack: Any, respond: Any, client: AsyncWebClient) -> None:
        await handle_ask_command(command, ack, respond, client, vectara)

    async def on_app_mention(event: dict[str, Any], say: Any) -> None:
        await handle_app_mention(event, say, vectara)

    async def on_error(error: Exception, body: dict[str, Any]) -> None:
        await handle_error(error, body)

    app.message(HELLO_PATTERN)(on_hello_message)
    app.message()(on_message)
    app.command("/hello")(on_hello_command)
    app.command("/ask")(on_ask_command)
    app.event("app_mention")(on_app_mention)
    app.error(on_error)
    return app


def create_app(settings: AppSettings, vectara: QueryService) -> AsyncApp:
    """Build the Bolt app with all handlers registered."""
    missing = settings.slack.missing()
    if missing:
        raise ConfigurationError(f"Missing Slack credentials: {', '.join(missing)}")

    signing_secret = settings.slack.signing_secret.get_secret_value() if settings.slack.signing_secret else None
    app = AsyncApp(
        token=settings.slack.bot_token.get_secret_value(),
        signing_secret=signing_secret,
        # Socket Mode payloads are not signed
        request_verification_enabled=bool(signing_secret),
    )
    return register_handlers(app, vectara)


async def start_socket_mode(settings: AppSettings, vectara: QueryService) -> None:
    """Connect to Slack over Socket Mode and serve until cancelled."""
    app = create_app(settings, vectara)
    handler = AsyncSocketModeHandler(app, settings.slack.app_token.get_secret_value())
    logger.info("slack_app_starting", mode="socket")
    await handler.start_async()
