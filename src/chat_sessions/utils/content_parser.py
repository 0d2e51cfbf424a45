"""
Tolerant parser for tag-shaped directives embedded in model output.

Models are often asked to annotate free text with tags such as
'<memory key="name">Ada</memory>'. 'parse_content' splits the text into an
ordered list of plain text and tag segments. It does not validate markup: a
tag that is never closed runs to the end of the input, and attributes that do
not look like 'key="value"' are ignored.
"""

import re

from loguru import logger
from pydantic import BaseModel, Field

TAG_PATTERN = re.compile(r"<(?P<name>[^>\s]+)(?P<params>\s+[^>]+)?>(?P<content>.*?)(?:</(?P=name)>|\Z)", re.DOTALL)
TAG_PARAMS_PATTERN = re.compile(r'(?P<name>\w+)="(?P<value>[^"]*)"')


class TextSegment(BaseModel):
    text: str


class TagSegment(BaseModel):
    """A decoded tag. 'content' is the inner text, without the surrounding markup."""

    name: str
    content: str | None = None
    params: dict[str, str] = Field(default_factory=dict)


class ParseResult(BaseModel):
    contents: list[TextSegment | TagSegment] = Field(default_factory=list)

    def first(self, tag: str) -> TagSegment | None:
        """Return the first tag segment named 'tag', if any."""
        return next((c for c in self.contents if isinstance(c, TagSegment) and c.name == tag), None)

    def tags(self, name: str) -> list[TagSegment]:
        return [c for c in self.contents if isinstance(c, TagSegment) and c.name == name]

    @property
    def text(self) -> str:
        """The plain text segments joined together, i.e. the input with all decoded tags removed."""
        return "".join(c.text for c in self.contents if isinstance(c, TextSegment))


def parse_tag_params(params: str | None) -> dict[str, str]:
    if not params:
        return {}
    parsed = {match.group("name"): match.group("value") for match in TAG_PARAMS_PATTERN.finditer(params)}
    if not parsed:
        logger.debug(f"No attributes could be read from {params!r}")
    return parsed


def parse_content(text: str, tags: list[str] | None = None) -> ParseResult:
    """
    Split 'text' into plain text and tag segments, left to right.

    When 'tags' is given (and not empty) only tags with those names are
    decoded; any other tag is kept verbatim, markup included, as a text
    segment.
    """
    contents: list[TextSegment | TagSegment] = []
    position = 0

    for match in TAG_PATTERN.finditer(text):
        if position < match.start():
            contents.append(TextSegment(text=text[position : match.start()]))

        name = match.group("name")
        if not tags or name in tags:
            contents.append(
                TagSegment(name=name, content=match.group("content"), params=parse_tag_params(match.group("params")))
            )
        else:
            contents.append(TextSegment(text=match.group(0)))
        position = match.end()

    if position < len(text):
        contents.append(TextSegment(text=text[position:]))
    return ParseResult(contents=contents)
