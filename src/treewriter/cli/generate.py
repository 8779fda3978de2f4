"""Handler for 'treewriter generate' command."""

import asyncio
import logging
import sys

from treewriter.cli._common import error, find_card, open_workspace, output_result, save
from treewriter.config import read_config
from treewriter.generation import ChatClient, ChatSettings, GenerationSession, Mode

logger = logging.getLogger(__name__)


def generate(args) -> int:
    """Run one generation for a card and write the result into the project."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
        level=logging.INFO,
    )

    settings = ChatSettings.from_config(read_config(args.config)["ai"])
    if not settings.is_valid:
        error("AI settings are incomplete; set ai.provider-url, ai.model-name and ai.api-key", args.json)

    mode = Mode(args.mode)
    if mode is Mode.CUSTOM and not (args.prompt or "").strip():
        error("--prompt is required for custom generation", args.json)

    workspace = open_workspace(args)
    data = workspace.data
    card = find_card(data, args.id, args.json)

    session = GenerationSession(lambda: workspace.data, ChatClient(settings))
    logger.info("Generating %s for %s", mode.value, card.id)
    written = asyncio.run(session.generate(card.id, mode, args.prompt))
    save(workspace, args.json)

    contents = [data.cards[card_id].content for card_id in written if card_id in data.cards]
    if any(text.startswith("AI Error:") for text in contents):
        error(contents[0], args.json)

    output_result(
        {"cards": [data.cards[card_id].to_dict() for card_id in written]},
        "\n\n---\n\n".join(contents),
        args.json,
    )
    return 0
