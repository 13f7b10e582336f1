"""Fill-in-the-middle prompt formatting."""

import re

FIM_PREFIX = "<PRE>"
FIM_SUFFIX = "<SUF>"
FIM_MIDDLE = "<MID>"
END_OF_TEXT = "<|end|>"

FIM_STOP_SEQUENCES = ("\n\n", END_OF_TEXT, FIM_PREFIX, FIM_SUFFIX, FIM_MIDDLE)

_CONTROL_TOKENS = re.compile(
    "|".join(re.escape(t) for t in (FIM_PREFIX, FIM_SUFFIX, FIM_MIDDLE, END_OF_TEXT))
)

_HASH_COMMENT_LANGUAGES = {
    "python", "ruby", "shell", "bash", "sh", "zsh", "perl", "r", "yaml", "toml", "dockerfile", "makefile",
}
_DASH_COMMENT_LANGUAGES = {"sql", "lua", "haskell"}


def format_fim_prompt(prefix: str, suffix: str = "") -> str:
    return f"{FIM_PREFIX}{prefix}{FIM_SUFFIX}{suffix}{FIM_MIDDLE}"


def extract_fim_completion(text: str) -> str:
    """Remove FIM control tokens and trailing whitespace from generated text."""
    return _CONTROL_TOKENS.sub("", text).rstrip()


def line_comment(language: str | None) -> str:
    """Line-comment marker for a language id (editor language ids, lower-cased)."""
    lang = (language or "").lower()
    if lang in _HASH_COMMENT_LANGUAGES:
        return "#"
    if lang in _DASH_COMMENT_LANGUAGES:
        return "--"
    return "//"
