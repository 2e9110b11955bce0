#!/usr/bin/env python3
"""
Main entry point for the Twitch chat companion
"""

import asyncio
import logging
import sys

from .app import ChatLine, Companion
from .config import load_config
from .errors.handling import log_error

# Configure logging after imports to prevent other modules from configuring it
from .logging_config import LoggerConfigurator, error_aggregator

configurator = LoggerConfigurator()
configurator.configure()


def print_line(line: ChatLine) -> None:
    badges = "".join(f"[{b.name.split('/', 1)[0]}]" for b in line.badges)
    emotes = sum(1 for f in line.fragments if f.is_emote)
    suffix = f" ({emotes} emotes)" if emotes else ""
    logging.info(f"💬 #{line.channel} {badges}{line.display_name or line.author}: {line.text}{suffix}")


async def main() -> None:
    """Load configuration, start the companion and run until cancelled."""
    companion: Companion | None = None
    try:
        print("🚀 Starting Twitch chat companion")
        config = load_config()
        companion = Companion(config)
        companion.add_listener(print_line)
        await companion.start()
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        raise
    except ValueError as e:
        logging.error(f"⚠️ {e}")
        sys.exit(1)
    finally:
        if companion is not None:
            await companion.close()
        error_aggregator.log_summary_report()
        logging.info("✅ Application shutdown complete")


def health_check() -> int:
    """Validate configuration without connecting; returns a process exit code."""
    logging.info("🏥 Health check mode")
    try:
        config = load_config()
    except ValueError as e:
        logging.error(f"❌ Health check failed: {e}")
        return 1
    mode = "anonymous" if config.credential().is_anonymous else config.username or "authenticated"
    logging.info(f"✅ Health check passed - {len(config.channels)} channel(s), {mode}")
    return 0


def run() -> None:
    """Synchronous entry point for the application."""
    if len(sys.argv) > 1 and sys.argv[1] == "--health-check":
        sys.exit(health_check())
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)
    except asyncio.CancelledError:
        sys.exit(0)
    except Exception as e:
        log_error("Top-level error", e)
        sys.exit(1)


if __name__ == "__main__":
    run()
