#!/usr/bin/env python3
"""
Command Parser
Matches free-text chat messages against the bot's command grammar.

Supported commands (case-insensitive, surrounding whitespace ignored):
    releases [exact] <title>
    releases [exact] <title> year <YYYY>
    subscribe to <title>
    list subscriptions

Patterns are tried in table order. The year-qualified release pattern comes
before the bare release pattern because the bare one would also match it.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from .schema import CommandIntent, ParsedCommand


def _release_args(match: re.Match) -> dict:
    groups = match.groups()
    return {
        "exact": bool(groups[0]),
        "title": groups[1].strip(),
        "year": groups[2] if len(groups) > 2 else None,
    }


def _subscribe_args(match: re.Match) -> dict:
    return {"title": match.group(1).strip()}


def _no_args(match: re.Match) -> dict:
    return {}


@dataclass(frozen=True)
class CommandPattern:
    """A grammar rule: regex, the intent it signals and its argument extractor"""
    pattern: re.Pattern
    intent: CommandIntent
    extract: Callable[[re.Match], dict]


COMMAND_TABLE = (
    CommandPattern(
        re.compile(r"releases? ?(exact)? (.+) year ([0-9]{4})"),
        CommandIntent.RELEASE_QUERY_WITH_YEAR,
        _release_args,
    ),
    CommandPattern(
        re.compile(r"releases? ?(exact)? (.+)"),
        CommandIntent.RELEASE_QUERY,
        _release_args,
    ),
    CommandPattern(
        re.compile(r"subscribe to (.+)"),
        CommandIntent.SUBSCRIBE,
        _subscribe_args,
    ),
    CommandPattern(
        re.compile(r"list subscriptions?"),
        CommandIntent.LIST_SUBSCRIPTIONS,
        _no_args,
    ),
)


def normalize_text(text: str) -> str:
    return text.strip().lower()


def parse_command(text: str) -> Optional[ParsedCommand]:
    """
    Parse a chat message into a command

    Args:
        text: Raw message text

    Returns:
        ParsedCommand for the first matching rule, or None when nothing
        matches (callers answer with the help message)
    """
    normalized = normalize_text(text)

    for rule in COMMAND_TABLE:
        match = rule.pattern.search(normalized)
        if match:
            return ParsedCommand(intent=rule.intent, **rule.extract(match))

    return None
