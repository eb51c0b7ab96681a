"""Runtime configuration and the entity registry."""

from ares_bot.config.registry import DEFAULT_REGISTRY, load_registry  # noqa: F401
from ares_bot.config.settings import BotSettings  # noqa: F401
