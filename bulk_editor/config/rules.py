import json
from pathlib import Path

from pydantic import BaseModel, Field


class HyperlinkReplacementRule(BaseModel):
    """Re-point hyperlinks whose display text matches a title."""

    id: str = ""
    title_to_match: str = ""
    content_id: str = ""
    enabled: bool = True


class TextReplacementRule(BaseModel):
    """Whole-word, case-insensitive text substitution."""

    id: str = ""
    source_text: str = ""
    replacement_text: str = ""
    enabled: bool = True


class ReplacementRules(BaseModel):
    hyperlink_rules: list[HyperlinkReplacementRule] = Field(default_factory=list)
    text_rules: list[TextReplacementRule] = Field(default_factory=list)


def load_rules_file(path: Path) -> ReplacementRules:
    """Load replacement rules from a JSON file.

    Raises:
        FileNotFoundError: if the file does not exist.
        pydantic.ValidationError: if the content does not describe valid rules.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    return ReplacementRules.model_validate(data)
