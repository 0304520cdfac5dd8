"""Shell-like parsing of the argument templates found in version metadata, such as the
legacy `minecraftArguments` string:

    --username ${auth_player_name} --version ${version_name} --gameDir ${game_directory}

The text is split on unquoted whitespace, quotes and backslashes are interpreted like a
POSIX shell would do and `$name` or `${name}` parameters are substituted.
"""

import string
import re

from typing import Optional, Callable, Dict, Iterator, List


_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")
_BRACED_PARAM = re.compile(r"\$\{([^}]*)\}")


class ArgumentSyntaxError(ValueError):
    """Raised when an argument template is malformed, the position is the index of the
    construct that could not be terminated.
    """

    def __init__(self, text: str, pos: int, reason: str) -> None:
        super().__init__(text, pos, reason)
        self.text = text
        self.pos = pos
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.reason} at {self.pos} in {self.text!r}"


class ParameterStrategy:
    """Defines how parameters and quoting are handled while parsing. The "ignore"
    strategy only splits the text into tokens, keeping each token's raw text. The "map"
    strategy unquotes tokens and replaces each parameter by the result of the mapping
    function given the parameter's name.
    """

    __slots__ = "mapping",

    def __init__(self, mapping: Optional[Callable[[str], str]]) -> None:
        self.mapping = mapping

    @classmethod
    def ignore(cls) -> "ParameterStrategy":
        return cls(None)

    @classmethod
    def map(cls, mapping: Callable[[str], str]) -> "ParameterStrategy":
        return cls(mapping)

    @classmethod
    def from_dict(cls, replacements: Dict[str, str]) -> "ParameterStrategy":
        """Map strategy backed by a dictionary, unknown parameters are replaced by an
        empty string.
        """
        return cls(lambda name: replacements.get(name, ""))

    def is_ignore(self) -> bool:
        return self.mapping is None


def parse(text: str, strategy: ParameterStrategy) -> Iterator[str]:
    """Iterate over the tokens of the given text.

    :raises ArgumentSyntaxError: If a quote, a braced parameter or an escape sequence is
    not terminated. Tokens before the error are still yielded.
    """
    scanner = _Scanner(text, strategy)
    while True:
        token = scanner.next_token()
        if token is None:
            return
        yield token


def parse_token(text: str, strategy: ParameterStrategy) -> str:
    """Parse only the first token of the given text, the text is returned as-is if it
    contains no token at all.
    """
    return next(parse(text, strategy), text)


def parse_all(text: str, strategy: ParameterStrategy) -> List[str]:
    return list(parse(text, strategy))


def expand(text: str, mapping: Callable[[str], str]) -> str:
    """Replace every `${name}` parameter of a single argument, without any tokenization
    or unquoting. This is used for arguments that are already split, like the modern
    arguments lists.
    """
    return _BRACED_PARAM.sub(lambda m: mapping(m.group(1)), text)


class _Scanner:
    """Internal cursor over the parsed text.
    """

    __slots__ = "text", "pos", "mapping"

    def __init__(self, text: str, strategy: ParameterStrategy) -> None:
        self.text = text
        self.pos = 0
        self.mapping = strategy.mapping

    def peek(self) -> Optional[str]:
        return self.text[self.pos] if self.pos < len(self.text) else None

    def next_token(self) -> Optional[str]:

        text = self.text
        while self.pos < len(text) and text[self.pos].isspace():
            self.pos += 1

        if self.pos >= len(text):
            return None

        parts = []
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace():
                break
            elif ch == "$":
                parts.append(self.read_parameter())
            elif ch == "'":
                parts.append(self.read_single_quoted())
            elif ch == "\"":
                parts.append(self.read_double_quoted())
            elif ch == "\\":
                parts.append(self.read_escape())
            else:
                parts.append(ch)
                self.pos += 1

        return "".join(parts)

    def read_continuation(self, ch: str) -> str:
        """Consume the rest of a backslash-newline continuation, `ch` being the already
        consumed line break character.
        """
        if ch == "\r" and self.peek() == "\n":
            self.pos += 1
            return "\r\n"
        return ch

    def read_escape(self) -> str:

        start = self.pos
        self.pos += 1
        ch = self.peek()
        if ch is None:
            raise ArgumentSyntaxError(self.text, start, "trailing backslash")

        self.pos += 1
        if ch in "\r\n":
            newline = self.read_continuation(ch)
            return f"\\{newline}" if self.mapping is None else ""

        return f"\\{ch}" if self.mapping is None else ch

    def read_single_quoted(self) -> str:

        start = self.pos
        end = self.text.find("'", start + 1)
        if end < 0:
            raise ArgumentSyntaxError(self.text, start, "unterminated single quote")

        self.pos = end + 1
        return self.text[start:end + 1] if self.mapping is None else self.text[start + 1:end]

    def read_double_quoted(self) -> str:

        raw = self.mapping is None
        start = self.pos
        self.pos += 1
        parts = ["\""] if raw else []

        while True:

            ch = self.peek()
            if ch is None:
                raise ArgumentSyntaxError(self.text, start, "unterminated double quote")

            if ch == "\"":
                self.pos += 1
                if raw:
                    parts.append("\"")
                return "".join(parts)

            elif ch == "\\":
                self.pos += 1
                escaped = self.peek()
                if escaped is None:
                    raise ArgumentSyntaxError(self.text, start, "unterminated double quote")
                self.pos += 1
                if escaped in "\r\n":
                    newline = self.read_continuation(escaped)
                    if raw:
                        parts.append(f"\\{newline}")
                elif raw:
                    parts.append(f"\\{escaped}")
                elif escaped in "\"$\\":
                    parts.append(escaped)
                else:
                    # Like a shell, the backslash is kept before ordinary characters.
                    parts.append(f"\\{escaped}")

            elif ch == "$":
                parts.append(self.read_parameter())

            else:
                parts.append(ch)
                self.pos += 1

    def read_parameter(self) -> str:

        start = self.pos
        self.pos += 1

        if self.mapping is None:
            return "$"

        if self.peek() == "{":
            end = self.text.find("}", self.pos + 1)
            if end < 0:
                raise ArgumentSyntaxError(self.text, start, "unterminated parameter")
            name = self.text[self.pos + 1:end]
            self.pos = end + 1
            return self.mapping(name)

        end = self.pos
        while end < len(self.text) and self.text[end] in _NAME_CHARS:
            end += 1

        if end == self.pos:
            # A lone dollar sign is kept literally.
            return "$"

        name = self.text[self.pos:end]
        self.pos = end
        return self.mapping(name)
