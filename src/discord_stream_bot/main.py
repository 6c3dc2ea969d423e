#!/usr/bin/env python3
"""Entry point: settings, logging, external binary checks, then the bot."""

from __future__ import annotations

import json
import logging
import logging.config
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from discord_stream_bot.domain.shared.messages import ErrorMessages, LogTemplates
from discord_stream_bot.utils.logging import quiet_voice_loggers

if TYPE_CHECKING:
    from discord_stream_bot.config.settings import AudioSettings

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"

_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(log_level: str = "INFO", *, debug: bool = False) -> None:
    """Apply ``logging_config.json``, or a plain console config when it cannot be loaded."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(_LOGGING_CONFIG_PATH) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (OSError, json.JSONDecodeError, ValueError):
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, _LOGGING_CONFIG_PATH)

    # Settings win over whatever level the file gives the root logger
    logging.getLogger().setLevel(level)
    quiet_voice_loggers(debug=debug)


def missing_binaries(audio: AudioSettings) -> list[str]:
    """Return the configured yt-dlp/ffmpeg executables that cannot be found."""
    return [path for path in (audio.ytdlp_path, audio.ffmpeg_path) if shutil.which(path) is None]


def main() -> int:
    from discord_stream_bot.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, debug=settings.debug)
    logger = logging.getLogger(__name__)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    # Every track would fail to spawn without these, so refuse to start
    missing = missing_binaries(settings.audio)
    if missing:
        logger.error(LogTemplates.BINARIES_MISSING, ", ".join(missing))
        return 1

    from discord_stream_bot.config.container import create_container
    from discord_stream_bot.infrastructure.discord.bot import create_bot

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    bot = create_bot(create_container(settings), settings)

    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """Console script entry point (``discord-stream-bot``)."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
