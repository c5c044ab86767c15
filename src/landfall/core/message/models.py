"""
Commit message model with trailer labels.

A change message is a free-text body followed by an optional trailer block of
``name<separator>value`` lines, for example::

    Import upstream changes

    Some more details.

    HgOrigin-RevId: 4f2c9e1a
    Reviewed-by: someone

The trailer block is the last paragraph of the message, and only counts as
one when every line in it is a label.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

LABEL_PATTERN = re.compile(r"^([\w-]+)(: |=)(.*)$")


class Label(BaseModel):
    """A single trailer line."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[\w-]+$")
    separator: str = Field(default=": ")
    value: str = Field(default="")

    def render(self) -> str:
        return f"{self.name}{self.separator}{self.value}"

    @classmethod
    def parse(cls, line: str) -> Label | None:
        """Parse a ``name: value`` / ``name=value`` line, or return None."""
        match = LABEL_PATTERN.match(line)
        if not match:
            return None
        return cls(name=match.group(1), separator=match.group(2), value=match.group(3))


class ChangeMessage(BaseModel):
    """
    Body text plus an ordered trailer block, unique by label name.

    Example:
        >>> msg = ChangeMessage.parse("Fix bug\\n\\nOrigin-RevId: abc")
        >>> msg = msg.with_new_or_replaced_label("Origin-RevId", ": ", "def")
        >>> str(msg)
        'Fix bug\\n\\nOrigin-RevId: def\\n'
    """

    model_config = ConfigDict(frozen=True)

    body: str = ""
    labels: tuple[Label, ...] = ()

    @classmethod
    def parse(cls, text: str) -> ChangeMessage:
        """Split text into body and trailer labels."""
        text = text.strip("\n")
        if not text.strip():
            return cls()

        paragraphs = re.split(r"\n[ \t]*\n", text)
        if len(paragraphs) < 2:
            return cls(body=text)

        last = paragraphs[-1].strip("\n")
        parsed = [Label.parse(line) for line in last.splitlines()]

        found = [label for label in parsed if label is not None]
        if not found or len(found) != len(parsed):
            return cls(body=text)

        body = "\n\n".join(paragraphs[:-1])
        labels: list[Label] = []
        seen: set[str] = set()
        for label in found:
            if label.name in seen:
                continue
            seen.add(label.name)
            labels.append(label)
        return cls(body=body, labels=tuple(labels))

    def label(self, name: str) -> Label | None:
        for label in self.labels:
            if label.name == name:
                return label
        return None

    def with_new_or_replaced_label(self, name: str, separator: str, value: str) -> ChangeMessage:
        """
        Return a copy with ``name`` set to ``value``.

        An existing label of the same name is replaced in place; otherwise the
        new label is appended after the existing trailers.
        """
        new_label = Label(name=name, separator=separator, value=value)
        labels: list[Label] = []
        replaced = False
        for label in self.labels:
            if label.name != name:
                labels.append(label)
            elif not replaced:
                labels.append(new_label)
                replaced = True
        if not replaced:
            labels.append(new_label)
        return self.model_copy(update={"labels": tuple(labels)})

    def render(self) -> str:
        body = self.body.rstrip()
        if not self.labels:
            return f"{body}\n" if body else ""
        trailer = "\n".join(label.render() for label in self.labels)
        if not body:
            return f"{trailer}\n"
        return f"{body}\n\n{trailer}\n"

    def __str__(self) -> str:
        return self.render()
