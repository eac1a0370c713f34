"""Loaded chain markdown plus parsed metadata."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import frontmatter

from promptable.models.chain_spec import ChainSpec


logger = logging.getLogger(__name__)

SECTION_HEADER_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*$", re.MULTILINE)
STEP_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass
class LoadedChainFile:
    spec: ChainSpec
    instructions: str = ""
    system_prompt: str = ""
    step_prompts: dict[str, str] = field(default_factory=dict)  # "step:<name>" -> markdown chunk

    @classmethod
    def load(cls, chain: Path | str) -> "LoadedChainFile":
        if isinstance(chain, Path) or ("\n" not in chain and Path(chain).exists()):
            post = frontmatter.load(str(chain))
            source_label = str(chain)
        else:
            post = frontmatter.loads(chain)
            source_label = "<inline>"
        spec = ChainSpec.model_validate(post.metadata)
        instructions, system_prompt, step_prompts = parse_chain_sections(post.content, source_label)
        missing = [
            step.prompt_section
            for step in spec.steps
            if step.prompt_section is not None and step.prompt_section not in step_prompts
        ]
        if missing:
            raise ValueError(f"Chain {spec.name!r} is missing prompt sections: {', '.join(missing)}")
        return cls(
            spec=spec,
            instructions=instructions,
            system_prompt=system_prompt,
            step_prompts=step_prompts,
        )


def classify_section_header(header_text: str) -> str | None:
    header = header_text.strip()
    prefix, sep, name = header.partition(":")
    if sep and prefix.strip().lower() == "step" and STEP_NAME_RE.match(name.strip()):
        return f"step:{name.strip()}"
    normalized = re.sub(r"\s+", " ", header.lower().replace("_", " "))
    if normalized in ("instructions", "system prompt"):
        return normalized.replace(" ", "_")
    return None


def parse_chain_sections(markdown_body: str, source_label: str = "<inline>") -> tuple[str, str, dict[str, str]]:
    """
    Split a chain body into instructions, system prompt and step prompts.

    Unrecognized headers stay part of the enclosing section. The first
    instructions and system prompt sections win; later duplicates are ignored.
    """
    recognized: list[tuple[str, int, int]] = []
    for match in SECTION_HEADER_RE.finditer(markdown_body):
        key = classify_section_header(match.group(2))
        if key is not None:
            recognized.append((key, match.start(), match.end()))

    if recognized and markdown_body[: recognized[0][1]].strip():
        logger.warning("Ignored text before the first section in %s", source_label)

    sections: dict[str, str] = {}
    for index, (key, _start, end) in enumerate(recognized):
        section_end = recognized[index + 1][1] if index + 1 < len(recognized) else len(markdown_body)
        if key in ("instructions", "system_prompt") and key in sections:
            continue
        sections[key] = markdown_body[end:section_end].strip()

    instructions = sections.pop("instructions", "")
    system_prompt = sections.pop("system_prompt", "")
    return instructions, system_prompt, sections
