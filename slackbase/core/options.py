"""Client option parsing.

A client is configured with either a single string (an API token, an incoming
webhook URL or a slackbot URL) or a mapping holding any subset of those three.
``parse_options`` turns whatever the caller passed into one of the frozen
config models below, or raises ``SlackConfigError``.
"""

from collections.abc import Mapping
import logging
import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from slackbase.core.errors import SlackConfigError

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"^xox[abposr]-[A-Za-z0-9-]+$")
WEBHOOK_PATTERN = re.compile(r"^https://hooks\.slack\.com/services/[A-Za-z0-9]+/[A-Za-z0-9]+/[A-Za-z0-9]+$")
SLACKBOT_PATTERN = re.compile(r"^https://[A-Za-z0-9-]+\.slack\.com/services/hooks/slackbot\?token=[A-Za-z0-9]+$")

OPTION_KEYS = ("token", "webhook", "slackbot")

MISSING_OPTIONS_MESSAGE = (
    "[fatal] missing options. please provide a token, webhook, slackbot url or settings object."
)

_INVALID_VALUE_LABELS = {
    "token": "Slack API token",
    "webhook": "webhook URL",
    "slackbot": "slackbot URL",
}


class _Config(BaseModel):
    model_config = ConfigDict(frozen=True)

    def defaults(self) -> dict[str, str]:
        return self.model_dump(include=set(OPTION_KEYS), exclude_none=True)


class TokenConfig(_Config):
    kind: Literal["token"] = "token"
    token: str


class WebhookConfig(_Config):
    kind: Literal["webhook"] = "webhook"
    webhook: str


class SlackbotConfig(_Config):
    kind: Literal["slackbot"] = "slackbot"
    slackbot: str


class CompositeConfig(_Config):
    kind: Literal["composite"] = "composite"
    token: str | None = None
    webhook: str | None = None
    slackbot: str | None = None


ClientConfig = Annotated[
    Union[TokenConfig, WebhookConfig, SlackbotConfig, CompositeConfig],
    Field(discriminator="kind"),
]

_PATTERNS = {
    "token": TOKEN_PATTERN,
    "webhook": WEBHOOK_PATTERN,
    "slackbot": SLACKBOT_PATTERN,
}

_STRING_CONFIGS = {
    "token": TokenConfig,
    "webhook": WebhookConfig,
    "slackbot": SlackbotConfig,
}


def matches(key: str, value: object) -> bool:
    return isinstance(value, str) and bool(_PATTERNS[key].match(value))


def _parse_string(value: str) -> TokenConfig | WebhookConfig | SlackbotConfig:
    for key in OPTION_KEYS:
        if matches(key, value):
            logger.info("options_parsed kind=%s", key)
            return _STRING_CONFIGS[key](**{key: value})
    raise SlackConfigError(
        f'[fatal] unrecognized option "{value}". please specify a valid API token, '
        "slackbot URL, webhook URL or an object containing these properties."
    )


def _parse_mapping(options: Mapping) -> CompositeConfig:
    values: dict[str, str] = {}
    for key in OPTION_KEYS:
        if key not in options or options[key] is None:
            continue
        value = options[key]
        if not matches(key, value):
            raise SlackConfigError(f'[fatal] "{value}" is not a valid {_INVALID_VALUE_LABELS[key]}.')
        values[key] = value

    if not values:
        raise SlackConfigError(MISSING_OPTIONS_MESSAGE)

    logger.info("options_parsed kind=composite keys=%s", ",".join(sorted(values)))
    return CompositeConfig(**values)


def parse_options(options: object) -> TokenConfig | WebhookConfig | SlackbotConfig | CompositeConfig:
    if isinstance(options, _Config):
        return options

    if options is None or (isinstance(options, (str, Mapping)) and not options):
        raise SlackConfigError(MISSING_OPTIONS_MESSAGE)

    if isinstance(options, str):
        return _parse_string(options)

    if isinstance(options, Mapping):
        return _parse_mapping(options)

    raise SlackConfigError(
        f'[fatal] expected options to be of type "str" or "dict", but instead got "{type(options).__name__}".'
    )
