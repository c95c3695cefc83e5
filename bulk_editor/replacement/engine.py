import re

from bulk_editor.config.rules import HyperlinkReplacementRule, TextReplacementRule
from bulk_editor.logging.logger import Log
from bulk_editor.processor.change_log import ChangeLogRecorder
from bulk_editor.processor.lookup_id import (
    canonical_url,
    content_id_suffix,
    is_valid_content_id,
    pad_content_id,
)
from bulk_editor.processor.models import (
    ChangeType,
    Document,
    ErrorSeverity,
    Hyperlink,
    HyperlinkAction,
)
from bulk_editor.processor.title_reconciler import split_display_text
from bulk_editor.replacement.exceptions import RuleValidationError
from bulk_editor.validation.exceptions import ValidationClientError
from bulk_editor.validation.hyperlink_validator import HyperlinkValidator
from bulk_editor.word.models import DocumentContent


def check_hyperlink_rule(rule: HyperlinkReplacementRule, validate_content_ids: bool) -> None:
    """Raise RuleValidationError if the rule cannot be applied."""
    if not rule.title_to_match.strip():
        raise RuleValidationError(f"Hyperlink rule '{rule.id}' has no title to match")
    if not rule.content_id.strip():
        raise RuleValidationError(f"Hyperlink rule '{rule.id}' has no content id")
    if validate_content_ids and not is_valid_content_id(rule.content_id):
        raise RuleValidationError(
            f"Hyperlink rule '{rule.id}' has malformed content id '{rule.content_id}' "
            "(expected 6 digits)"
        )


def check_text_rule(rule: TextReplacementRule) -> None:
    """Raise RuleValidationError if the rule cannot be applied."""
    if not rule.source_text.strip():
        raise RuleValidationError(f"Text rule '{rule.id}' has no source text")
    if not rule.replacement_text.strip():
        raise RuleValidationError(f"Text rule '{rule.id}' has no replacement text")
    if rule.source_text == rule.replacement_text:
        raise RuleValidationError(f"Text rule '{rule.id}' replaces text with itself")


class ReplacementEngine:
    """Applies user-defined hyperlink and text replacement rules.

    At most ``max_rules`` enabled rules are evaluated: hyperlink rules first,
    then text rules, each in declared order. A malformed rule is reported as a
    Warning and skipped; it never fails the document.
    """

    def __init__(
        self,
        *,
        validator: HyperlinkValidator,
        hyperlink_rules: list[HyperlinkReplacementRule] | None = None,
        text_rules: list[TextReplacementRule] | None = None,
        max_rules: int = 50,
        validate_content_ids: bool = True,
        log: Log | None = None,
    ) -> None:
        self._validator = validator
        self._validate_content_ids = validate_content_ids
        self._log = log or Log()
        enabled_links = [r for r in hyperlink_rules or [] if r.enabled]
        enabled_text = [r for r in text_rules or [] if r.enabled]
        limit = max(0, max_rules)
        self._hyperlink_rules = enabled_links[:limit]
        self._text_rules = enabled_text[: max(0, limit - len(self._hyperlink_rules))]
        skipped = len(enabled_links) + len(enabled_text) - self.rule_count
        if skipped:
            self._log.warning(f"{skipped} replacement rule(s) ignored, limit is {limit}")

    @property
    def rule_count(self) -> int:
        return len(self._hyperlink_rules) + len(self._text_rules)

    def apply(
        self,
        document: Document,
        content: DocumentContent,
        recorder: ChangeLogRecorder,
    ) -> int:
        """Apply all rules to the document. Returns the number of changes made."""
        changes = 0
        for rule in self._hyperlink_rules:
            changes += self._apply_hyperlink_rule(rule, document, recorder)
        if self._text_rules:
            changes += self._apply_text_rules(document, content, recorder)
        if changes:
            self._log.info(f"Replacement rules made {changes} change(s) in {document.file_name}")
        return changes

    def _apply_hyperlink_rule(
        self,
        rule: HyperlinkReplacementRule,
        document: Document,
        recorder: ChangeLogRecorder,
    ) -> int:
        targets = [
            h
            for h in document.hyperlinks
            if h.action_taken == HyperlinkAction.NONE and _title_matches(h, rule.title_to_match)
        ]
        if not targets:
            return 0
        try:
            check_hyperlink_rule(rule, self._validate_content_ids)
        except RuleValidationError as exc:
            for hyperlink in targets:
                self._warn(document, f"{exc}; hyperlink '{hyperlink.display_text}' skipped", rule)
            return 0

        content_id = pad_content_id(rule.content_id)
        try:
            record = self._validator.resolve([content_id]).get(content_id)
        except ValidationClientError as exc:
            self._warn(document, f"Could not resolve content id {content_id}: {exc}", rule)
            return 0
        if record is None:
            self._warn(document, f"Content id {content_id} was not found", rule)
            return 0

        for hyperlink in targets:
            old_text = hyperlink.display_text
            old_url = hyperlink.current_url
            self._validator.apply_record(hyperlink, record)
            padded = hyperlink.content_id or content_id
            hyperlink.display_text = f"{record.title.strip()}{content_id_suffix(padded)}"
            hyperlink.updated_url = canonical_url(hyperlink.document_id, padded)
            hyperlink.requires_update = False
            recorder.record_hyperlink_action(
                hyperlink,
                HyperlinkAction.UPDATED,
                ChangeType.HYPERLINK_UPDATED,
                f"Hyperlink replaced by rule '{rule.id}'",
                old_value=f"{old_text} | {old_url}",
                new_value=f"{hyperlink.display_text} | {hyperlink.updated_url}",
                details=f"Matched title '{rule.title_to_match}'",
            )
        return len(targets)

    def _apply_text_rules(
        self,
        document: Document,
        content: DocumentContent,
        recorder: ChangeLogRecorder,
    ) -> int:
        compiled: list[tuple[re.Pattern[str], str]] = []
        for rule in self._text_rules:
            try:
                check_text_rule(rule)
            except RuleValidationError as exc:
                self._warn(document, str(exc), rule)
                continue
            pattern = re.compile(rf"\b{re.escape(rule.source_text)}\b", re.IGNORECASE)
            compiled.append((pattern, rule.replacement_text))

        changed_paragraphs = 0
        for paragraph in content.paragraphs:
            old_text = paragraph.text
            applied = 0
            for pattern, replacement in compiled:
                hits = 0
                for i, run in enumerate(paragraph.runs):
                    paragraph.runs[i], count = pattern.subn(lambda _m: replacement, run)
                    hits += count
                applied += 1 if hits else 0
            if applied:
                changed_paragraphs += 1
                recorder.record(
                    ChangeType.TEXT_REPLACED,
                    f"Text replaced in paragraph {paragraph.index + 1}",
                    old_value=old_text,
                    new_value=paragraph.text,
                    element_id=f"p{paragraph.index}",
                    details=f"Applied {applied} replacement rule(s)",
                )
        return changed_paragraphs

    def _warn(
        self,
        document: Document,
        message: str,
        rule: HyperlinkReplacementRule | TextReplacementRule,
    ) -> None:
        self._log.warning(f"{document.file_name}: {message}")
        document.add_error(message, severity=ErrorSeverity.WARNING, rule_id=rule.id)


def _title_matches(hyperlink: Hyperlink, title_to_match: str) -> bool:
    wanted = title_to_match.strip().lower()
    if not wanted:
        return False
    title, _, _ = split_display_text(hyperlink.display_text)
    return title.strip().lower() == wanted
