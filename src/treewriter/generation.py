"""AI text generation for cards over an OpenAI-compatible streaming API.

ChatClient streams server-sent events with httpx. GenerationSession turns
a card plus a mode into a prompt, writes the streamed text into a
placeholder card and applies the final result to the forest.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable

import httpx

from treewriter.model.card import add_card, delete_subtree, update_content
from treewriter.model.query import get_children, get_column, get_siblings
from treewriter.models import Card, ProjectData

logger = logging.getLogger(__name__)

NONE_TEXT = "None"
CARD_SEPARATOR = "\n\n---\n\n"
PLACEHOLDER = "AI is thinking..."
DONE = "[DONE]"

SYSTEM_PROMPT = """\
You are a writing partner inside a column-based, hierarchical card writing tool.

The document is a tree of cards laid out in columns. Column 1 holds the root
cards; each later column holds the children of cards in the column before it.
Every card is a self-contained unit of text with a parent, children, siblings,
ancestors and descendants.

Rules:
- Write only plain text, with no markdown emphasis.
- Give only the requested card content, with no greetings or commentary.
- When the answer spans several cards, put "---" on its own line between the
  content of consecutive cards.

Keep the writing clear, coherent and consistent with the surrounding cards."""


class GenerationError(Exception):
    """The text generation provider failed or returned an unusable response."""


class Mode(enum.Enum):
    CONTINUE = "continue"
    SUMMARIZE = "summarize"
    BREAKDOWN = "breakdown"
    EXPAND = "expand"
    CUSTOM = "custom"


# Modes whose result may hold several cards separated by "---".
SPLIT_MODES = frozenset({Mode.BREAKDOWN, Mode.CUSTOM})


@dataclass
class ChatSettings:
    provider_url: str = ""
    model_name: str = ""
    api_key: str = ""
    temperature: float | None = None
    timeout: float = 60.0

    @property
    def is_valid(self) -> bool:
        return bool(self.provider_url and self.model_name and self.api_key)

    @classmethod
    def from_config(cls, section: dict[str, Any]) -> ChatSettings:
        """Build from the ``[ai]`` section of read_config()."""
        temperature = section.get("temperature")
        return cls(
            provider_url=section.get("provider_url") or "",
            model_name=section.get("model_name") or "",
            api_key=section.get("api_key") or "",
            temperature=float(temperature) if temperature not in (None, "") else None,
        )


# --- Prompt context ---


@dataclass
class CardContext:
    global_prompt: str
    column_prompt: str
    parent: str
    current: str
    preceding: str
    following: str
    children: str
    target_column_prompt: str


def _joined(cards: list[Card]) -> str:
    texts = [card.content.strip() for card in cards if card.content.strip()]
    return CARD_SEPARATOR.join(texts) or NONE_TEXT


def _column_prompt(data: ProjectData, column_index: int) -> str:
    column = get_column(data, column_index)
    return (column.prompt if column else "") or NONE_TEXT


def build_context(data: ProjectData, card: Card) -> CardContext:
    """Gather the text around a card that goes into every prompt."""
    parent = data.cards.get(card.parent_id) if card.parent_id else None
    siblings = get_siblings(data, card.id)
    return CardContext(
        global_prompt=data.global_prompt or NONE_TEXT,
        column_prompt=_column_prompt(data, card.column_index),
        parent=(parent.content if parent else "") or f"{NONE_TEXT} (This is a root card)",
        current=card.content,
        preceding=_joined([c for c in siblings if c.order < card.order]),
        following=_joined([c for c in siblings if c.order > card.order]),
        children=_joined(get_children(data, card.id, card.column_index + 1)),
        target_column_prompt=_column_prompt(data, card.column_index + 1),
    )


def _section(title: str, body: str, level: int = 1) -> str:
    return f"{'#' * level} {title}\n\n{body}"


def _task_continue(ctx: CardContext, user_prompt: str | None) -> list[str]:
    return [
        _section("Parent Card Content", ctx.parent, 2),
        _section("Preceding Sibling Cards Content", ctx.preceding, 2),
        _section("Anchor Card Content (The card to continue FROM)", ctx.current),
        _section(
            "Task: Generate Next Sibling Card",
            "Write the content of the single next card that should follow the anchor card. "
            "It will sit directly after the anchor, in the same column and under the same parent. "
            "Continue its thought seamlessly, stay relevant to the parent card, mimic the existing "
            "writing style closely and follow the global and column prompts. "
            "Output only the plain text of the new card.",
            2,
        ),
    ]


def _task_summarize(ctx: CardContext, user_prompt: str | None) -> list[str]:
    return [
        _section("Parent Card Content", ctx.parent, 2),
        _section("Sibling Cards Content", f"{ctx.preceding}\n\n{ctx.following}", 2),
        _section("Current Card Content (Target for Summary)", ctx.current),
        _section(
            "Task: Summarize Current Card",
            "Provide a concise plain text summary of the current card content, "
            "coherent with the surrounding context.",
        ),
    ]


def _task_breakdown(ctx: CardContext, user_prompt: str | None) -> list[str]:
    return [
        _section("Parent Card Content", ctx.parent, 2),
        _section("Existing Child Cards Content", ctx.children, 2),
        _section("Target Column Context", ctx.target_column_prompt, 2),
        _section("Current Card Content (Topic to Break Down)", ctx.current),
        _section(
            "Task: Brainstorm Child Cards",
            "Generate several distinct ideas or subtopics that expand on the current card. "
            'Each should work as the content of a new child card. Separate them with "---".',
        ),
    ]


def _task_expand(ctx: CardContext, user_prompt: str | None) -> list[str]:
    return [
        _section("Parent Card Content", ctx.parent, 2),
        _section("Preceding Sibling Cards Content", ctx.preceding, 2),
        _section("Following Sibling Cards Content", ctx.following, 2),
        _section("Original Card Content (The card to enrich)", ctx.current),
        _section("Existing Child Cards Content (of the Original Card)", ctx.children),
        _section(
            "Task: Enrich Original Card",
            "Rewrite the original card as a significantly longer and more detailed version. "
            "Add supporting detail, examples and explanation without introducing unrelated topics. "
            "Keep it consistent with the parent and the prompts, flowing from the preceding siblings "
            "towards the following ones, and keep the established style. "
            "Output only the complete enriched text.",
        ),
    ]


def _task_custom(ctx: CardContext, user_prompt: str | None) -> list[str]:
    return [
        _section("Parent Card Content", ctx.parent, 2),
        _section("Preceding Sibling Cards Content", ctx.preceding, 2),
        _section("Following Sibling Cards Content", ctx.following, 2),
        _section("Current Card Content (Primary Subject Card)", ctx.current),
        _section("Existing Child Cards Content", ctx.children),
        _section("User's Custom Instruction", user_prompt or NONE_TEXT),
        _section(
            "Task: Execute Custom Instruction",
            "Carry out the user's instruction against the current card and its context. "
            "If it changes the card, output the complete replacement text. "
            'If it asks for several new cards, separate them with "---" on its own line. '
            "Output plain text only.",
        ),
    ]


_TASKS: dict[Mode, Callable[[CardContext, str | None], list[str]]] = {
    Mode.CONTINUE: _task_continue,
    Mode.SUMMARIZE: _task_summarize,
    Mode.BREAKDOWN: _task_breakdown,
    Mode.EXPAND: _task_expand,
    Mode.CUSTOM: _task_custom,
}


def build_messages(data: ProjectData, card: Card, mode: Mode, user_prompt: str | None = None) -> list[dict[str, str]]:
    """System and user messages for generating from card in mode."""
    ctx = build_context(data, card)
    sections = [
        _section("Overall Document Context", ctx.global_prompt),
        _section("Current Column Context", ctx.column_prompt),
        "# Hierarchical Context (Upwards and Sideways)",
        *_TASKS[mode](ctx, user_prompt),
    ]
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n\n".join(sections)},
    ]


def split_parts(text: str) -> list[str]:
    """Split a multi-card response on "---", dropping empty parts."""
    return [part.strip() for part in text.split("---") if part.strip()]


# --- Streaming client ---


def parse_sse_line(line: str) -> str | None:
    """Delta text carried by one ``data:`` line, if any.

    Returns None for other lines, for the ``[DONE]`` sentinel and for
    chunks without content.
    """
    if not line.startswith("data: "):
        return None
    payload = line[len("data: "):].strip()
    if payload == DONE:
        return None
    try:
        chunk = json.loads(payload)
    except json.JSONDecodeError:
        logger.warning("Skipping unparseable stream chunk: %r", payload)
        return None
    choices = chunk.get("choices") if isinstance(chunk, dict) else None
    if not choices:
        return None
    return (choices[0].get("delta") or {}).get("content") or None


class ChatClient:
    """Streams chat completions from an OpenAI-compatible endpoint."""

    def __init__(self, settings: ChatSettings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def _payload(self, messages: list[dict[str, str]]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.settings.model_name,
            "messages": messages,
            "stream": True,
        }
        if self.settings.temperature is not None:
            payload["temperature"] = self.settings.temperature
        return payload

    async def iter_deltas(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Yield content deltas as they arrive. Raises GenerationError."""
        if not self.settings.is_valid:
            raise GenerationError("AI settings are incomplete; set provider-url, model-name and api-key")
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(self.settings.timeout),
            ) as client:
                async with client.stream(
                    "POST", self.settings.provider_url, headers=headers, json=self._payload(messages)
                ) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        raise GenerationError(f"API Error ({response.status_code}): {_error_message(response)}")
                    async for line in response.aiter_lines():
                        if line.strip() == f"data: {DONE}":
                            break
                        delta = parse_sse_line(line)
                        if delta:
                            yield delta
        except httpx.HTTPError as e:
            raise GenerationError(f"Request failed: {e}") from e

    async def stream_chat(
        self,
        messages: list[dict[str, str]],
        on_chunk: Callable[[str], None],
        on_error: Callable[[Exception], None],
        on_done: Callable[[str], None],
    ) -> str | None:
        """Stream a completion through callbacks. Returns the text, or None on error."""
        parts: list[str] = []
        try:
            async for delta in self.iter_deltas(messages):
                parts.append(delta)
                on_chunk(delta)
        except GenerationError as e:
            logger.warning("Generation failed: %s", e)
            on_error(e)
            return None
        text = "".join(parts)
        on_done(text)
        return text


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.reason_phrase or "Unknown error"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return response.reason_phrase or "Unknown error"


# --- Applying results to the forest ---


class GenerationSession:
    """Runs one generation at a time against the active project.

    ``on_update`` receives a card id each time generated text changes
    the forest, so the presentation can re-render it.
    """

    def __init__(
        self,
        data_source: Callable[[], ProjectData | None],
        client: ChatClient,
        on_update: Callable[[str], None] | None = None,
    ):
        self.data_source = data_source
        self.client = client
        self.on_update = on_update
        self.busy = False

    def _notify(self, card_id: str) -> None:
        if self.on_update is not None:
            self.on_update(card_id)

    def _placeholder(self, data: ProjectData, card: Card, mode: Mode) -> Card | None:
        if mode is Mode.CONTINUE:
            siblings = get_siblings(data, card.id)
            index = next(i for i, c in enumerate(siblings) if c.id == card.id)
            following = siblings[index + 1].id if index + 1 < len(siblings) else None
            return add_card(data, card.parent_id, card.column_index, insert_before=following, content=PLACEHOLDER)
        return add_card(data, card.id, card.column_index + 1, content=PLACEHOLDER)

    async def generate(self, card_id: str, mode: Mode, user_prompt: str | None = None) -> list[str]:
        """Generate for card_id. Returns the ids of the cards written.

        Empty when busy, the card is unknown, or a custom prompt is blank.
        """
        data = self.data_source()
        card = data.cards.get(card_id) if data is not None else None
        if self.busy or card is None:
            return []
        if mode is Mode.CUSTOM and not (user_prompt or "").strip():
            return []

        messages = build_messages(data, card, mode, user_prompt)
        placeholder = self._placeholder(data, card, mode)
        if placeholder is None:
            return []
        self._notify(placeholder.id)

        streamed: list[str] = []

        def on_chunk(delta: str) -> None:
            streamed.append(delta)
            update_content(data, placeholder.id, "".join(streamed))
            self._notify(placeholder.id)

        def on_error(error: Exception) -> None:
            update_content(data, placeholder.id, f"AI Error: {error}")
            self._notify(placeholder.id)

        self.busy = True
        try:
            text = await self.client.stream_chat(messages, on_chunk, on_error, lambda _text: None)
        finally:
            self.busy = False
        if text is None:
            return [placeholder.id]
        return self._apply(data, placeholder, mode, text)

    def _apply(self, data: ProjectData, placeholder: Card, mode: Mode, text: str) -> list[str]:
        if mode not in SPLIT_MODES:
            update_content(data, placeholder.id, text)
            self._notify(placeholder.id)
            return [placeholder.id]

        parts = split_parts(text)
        if not parts:
            logger.info("Generation returned no usable parts, removing placeholder")
            delete_subtree(data, placeholder.id)
            self._notify(placeholder.id)
            return []

        update_content(data, placeholder.id, parts[0])
        written = [placeholder.id]
        for part in parts[1:]:
            siblings = get_siblings(data, written[-1])
            index = next(i for i, c in enumerate(siblings) if c.id == written[-1])
            following = siblings[index + 1].id if index + 1 < len(siblings) else None
            card = add_card(
                data,
                placeholder.parent_id,
                placeholder.column_index,
                insert_before=following,
                content=part,
            )
            if card is not None:
                written.append(card.id)
        for card_id in written:
            self._notify(card_id)
        return written
