"""Configuration loading and validation for whatsapp-autoreply."""

import logging
import os
from dataclasses import dataclass, field

import yaml

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Thanks for your message! We'll get back to you soon. 🙏"

DEFAULT_SYSTEM_PROMPT = """\
You are a helpful WhatsApp assistant for Supra Travels, a bus operator on the
Bangalore - Hosadurga route. Keep responses concise, friendly, and under 500
characters. Use emojis occasionally. When live data is provided, answer only
from it and never invent seat counts, timings or booking details. If asked
about something you don't know, politely say you'll get back to them.
"""

DEFAULT_GATEWAY_URL = "https://supratravels.gt.tc/api/bot.php"

# A value of None means "never auto-reply to this phrase".
DEFAULT_KEYWORDS: dict[str, str | None] = {
    "hi": "Hello! 👋 How can I help you today?",
    "hello": "Hello! 👋 How can I help you today?",
    "hey": "Hey there! 👋 How can I help you?",
    "help": (
        "Here's how I can help:\n"
        "• Send 'info' for more information\n"
        "• Send 'contact' for contact details\n"
        "• Or just type your question!"
    ),
    "info": "Thanks for your interest! Our team will reach out to you shortly with more details.",
    "contact": "You can reach us at:\n📧 Email: info@supratravels.in\n📞 Phone: +91 96860 20017",
    "thanks": "You're welcome! 😊 Let us know if you need anything else.",
    "thank you": "You're welcome! 😊 Let us know if you need anything else.",
    "bye": "Goodbye! 👋 Have a great day!",
    "ok": None,
    "okay": None,
    "yes": None,
    "no": None,
}

KNOWN_KEYS = {
    "enabled",
    "default_message",
    "cooldown",
    "keywords",
    "use_gateway",
    "use_ai",
    "mode",
    "bulk_delay",
    "gateway",
    "ai",
}

VALID_MODES = {"ai", "menu"}
VALID_PROVIDERS = {"openrouter", "google"}


@dataclass
class GatewayConfig:
    url: str = DEFAULT_GATEWAY_URL
    api_key: str = ""
    timeout: float = 10


@dataclass
class AIConfig:
    provider: str | None = None  # None = pick from available API keys
    model: str | None = None
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    timeout: float = 15
    max_tokens: int = 300
    temperature: float = 0.7


@dataclass
class Config:
    enabled: bool = True
    default_message: str = DEFAULT_MESSAGE
    cooldown: float = 5
    keywords: dict[str, str | None] = field(default_factory=lambda: dict(DEFAULT_KEYWORDS))
    use_gateway: bool = True
    use_ai: bool = True
    mode: str = "ai"
    bulk_delay: float = 1
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    ai: AIConfig = field(default_factory=AIConfig)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_config(config: Config) -> None:
    """Validate config values, raising ValueError on invalid fields."""
    for name in ("enabled", "use_gateway", "use_ai"):
        value = getattr(config, name)
        if not isinstance(value, bool):
            raise ValueError(f"{name} must be a boolean, got {type(value).__name__}")

    if not isinstance(config.default_message, str):
        raise ValueError(
            f"default_message must be a string, got {type(config.default_message).__name__}"
        )

    for name in ("cooldown", "bulk_delay"):
        value = getattr(config, name)
        if not _is_number(value):
            raise ValueError(f"{name} must be a number, got {type(value).__name__}")
        if value < 0:
            raise ValueError(f"{name} must not be negative, got {value}")

    if config.mode not in VALID_MODES:
        valid = ", ".join(sorted(VALID_MODES))
        raise ValueError(f"Invalid mode '{config.mode}'. Must be one of: {valid}")

    for key, value in config.keywords.items():
        if value is not None and not isinstance(value, str):
            raise ValueError(f"keywords.{key} must be a string or null")

    if not isinstance(config.gateway.url, str) or not config.gateway.url:
        raise ValueError("gateway.url must be a non-empty string")
    if not isinstance(config.gateway.api_key, str):
        raise ValueError(
            f"gateway.api_key must be a string, got {type(config.gateway.api_key).__name__}"
        )
    if not _is_number(config.gateway.timeout) or config.gateway.timeout <= 0:
        raise ValueError(f"gateway.timeout must be positive, got {config.gateway.timeout}")

    if config.ai.provider is not None and config.ai.provider not in VALID_PROVIDERS:
        valid = ", ".join(sorted(VALID_PROVIDERS))
        raise ValueError(f"Invalid ai.provider '{config.ai.provider}'. Must be one of: {valid}")
    if config.ai.model is not None and not isinstance(config.ai.model, str):
        raise ValueError(f"ai.model must be a string, got {type(config.ai.model).__name__}")
    if not isinstance(config.ai.system_prompt, str):
        raise ValueError(
            f"ai.system_prompt must be a string, got {type(config.ai.system_prompt).__name__}"
        )
    if not _is_number(config.ai.timeout) or config.ai.timeout <= 0:
        raise ValueError(f"ai.timeout must be positive, got {config.ai.timeout}")
    max_tokens = config.ai.max_tokens
    if not isinstance(max_tokens, int) or isinstance(max_tokens, bool) or max_tokens <= 0:
        raise ValueError(f"ai.max_tokens must be a positive integer, got {max_tokens!r}")
    if not _is_number(config.ai.temperature) or config.ai.temperature < 0:
        raise ValueError(
            f"ai.temperature must be a non-negative number, got {config.ai.temperature!r}"
        )


def _apply_env(config: Config) -> None:
    """Overlay settings that the deployment provides through the environment."""
    if os.environ.get("AUTO_REPLY_ENABLED") == "false":
        config.enabled = False

    cooldown = os.environ.get("AUTO_REPLY_COOLDOWN")
    if cooldown:
        try:
            config.cooldown = int(cooldown)
        except ValueError:
            logger.warning("Ignoring non-integer AUTO_REPLY_COOLDOWN=%r", cooldown)

    if os.environ.get("SUPRA_API_URL"):
        config.gateway.url = os.environ["SUPRA_API_URL"]
    if os.environ.get("SUPRA_API_KEY"):
        config.gateway.api_key = os.environ["SUPRA_API_KEY"]


def _load_section(raw: dict, name: str, target) -> None:
    section = raw[name]
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a mapping")
    for key, value in section.items():
        if not hasattr(target, key):
            logger.warning("Unknown config key '%s.%s' — ignoring", name, key)
            continue
        setattr(target, key, value)


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML file.

    Config path resolution order:
    1. Explicit path argument
    2. WHATSAPP_AUTOREPLY_CONFIG environment variable
    3. ~/.config/whatsapp-autoreply/config.yaml (optional; defaults if absent)

    Environment overrides (AUTO_REPLY_*, SUPRA_API_*) are applied last.
    """
    explicit = path is not None
    if path is None:
        path = os.environ.get("WHATSAPP_AUTOREPLY_CONFIG")
        explicit = path is not None
    if path is None:
        path = os.path.expanduser("~/.config/whatsapp-autoreply/config.yaml")

    raw = None
    if explicit or os.path.exists(path):
        with open(path) as f:
            raw = yaml.safe_load(f)
    else:
        logger.info("No config file at %s; using defaults", path)

    if raw is None:
        raw = {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a YAML mapping, got {type(raw).__name__}")

    # Warn about unknown keys
    for key in raw:
        if key not in KNOWN_KEYS:
            logger.warning("Unknown config key '%s' — ignoring", key)

    config = Config()

    # Simple scalar fields
    for name in ("enabled", "default_message", "cooldown", "use_gateway", "use_ai", "bulk_delay"):
        if name in raw:
            setattr(config, name, raw[name])
    if "mode" in raw:
        config.mode = str(raw["mode"])

    # Keywords: merge over defaults, normalizing keys
    if "keywords" in raw:
        raw_keywords = raw["keywords"]
        if not isinstance(raw_keywords, dict):
            raise ValueError("'keywords' must be a mapping")
        for keyword, reply in raw_keywords.items():
            config.keywords[str(keyword).strip().lower()] = reply

    if "gateway" in raw:
        _load_section(raw, "gateway", config.gateway)
    if "ai" in raw:
        _load_section(raw, "ai", config.ai)

    _apply_env(config)
    _validate_config(config)

    return config
