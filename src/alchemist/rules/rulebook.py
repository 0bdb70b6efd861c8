# src/alchemist/rules/rulebook.py
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from alchemist.errors import RuleError
from alchemist.schemas.rules import RULE_ADAPTER, Rule

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_VERSION = "1.0"


def parse_rule(data: Mapping[str, Any] | Rule) -> Rule:
    """
    @brief
    Validate a rule definition against the parameter schema of its type.

    @params
        data : Mapping | Rule
            Rule as a mapping (camelCase keys, as exported) or an existing model.

    @returns
        Typed rule variant.

    @raises
        RuleError
            Raised when the type is unknown or the parameters do not fit it.
    """
    if not isinstance(data, Mapping):
        data = data.model_dump(by_alias=True)
    try:
        return RULE_ADAPTER.validate_python(dict(data))
    except ValidationError as e:
        raise RuleError(
            message=f"Invalid rule configuration: {e}",
            source="rules.parse_rule",
            suggested_action="Check the rule type and that its parameters match that type.",
        ) from e


def dump_rule(rule: Rule) -> dict[str, Any]:
    """JSON-ready mapping with camelCase keys and ISO timestamps."""
    return rule.model_dump(mode="json", by_alias=True)


class RuleBook:
    """
    @brief
    In-memory collection of allocation rules.

    @details
    Rules keep their insertion order; ordered() sorts by priority with ties
    broken by that order. Every mutation revalidates through parse_rule, so
    the book never holds a rule whose parameters do not match its type.
    Rule parameters may name task ids or groups that do not exist in the
    uploaded data; those references are not checked here.
    """

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def get(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def add(self, data: Mapping[str, Any] | Rule) -> Rule:
        rule = parse_rule(data)
        if rule.id in self._rules:
            raise RuleError(
                message=f"Rule id already exists: {rule.id}",
                source="RuleBook.add",
                suggested_action="Use update() to change an existing rule or omit the id.",
            )
        self._rules[rule.id] = rule
        logger.info("Rule added: %s (%s)", rule.id, rule.type)
        return rule

    def update(self, rule_id: str, changes: Mapping[str, Any]) -> Rule:
        """
        @brief
        Apply changes to a rule and revalidate it.

        @details
        Top-level keys in `changes` replace the current values (parameters
        are replaced as a whole, which also allows changing the type). The
        id and createdAt are preserved and updatedAt is set to now.
        """
        current = self._require(rule_id, "RuleBook.update")
        merged = current.model_dump(by_alias=True)
        merged.update(changes)
        merged["id"] = current.id
        merged["createdAt"] = current.created_at
        merged["updatedAt"] = datetime.now(timezone.utc)

        rule = parse_rule(merged)
        self._rules[rule_id] = rule
        logger.info("Rule updated: %s", rule_id)
        return rule

    def remove(self, rule_id: str) -> Rule:
        self._require(rule_id, "RuleBook.remove")
        logger.info("Rule removed: %s", rule_id)
        return self._rules.pop(rule_id)

    def toggle(self, rule_id: str) -> Rule:
        current = self._require(rule_id, "RuleBook.toggle")
        return self.update(rule_id, {"isActive": not current.is_active})

    def ordered(self) -> list[Rule]:
        # sorted() is stable, so equal priorities keep insertion order
        return sorted(self._rules.values(), key=lambda r: r.priority)

    def active(self) -> list[Rule]:
        return [rule for rule in self.ordered() if rule.is_active]

    # ---------- Document form ----------
    def export_document(
        self, version: str = DEFAULT_DOCUMENT_VERSION, exported_at: datetime | None = None
    ) -> dict[str, Any]:
        """
        @brief
        Render the book as {rules, exportedAt, version}.
        """
        stamp = exported_at or datetime.now(timezone.utc)
        return {
            "rules": [dump_rule(rule) for rule in self],
            "exportedAt": stamp.isoformat(),
            "version": version,
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> RuleBook:
        """
        @brief
        Rebuild a book from an exported document.

        @raises
            RuleError
                Raised when the document has no rule list or a rule is invalid.
        """
        rules = document.get("rules") if isinstance(document, Mapping) else None
        if not isinstance(rules, list):
            raise RuleError(
                message="Rules document must contain a 'rules' list",
                source="RuleBook.from_document",
                suggested_action="Load a file produced by export_document (rules-config.json).",
            )
        book = cls()
        for entry in rules:
            book.add(entry)
        return book

    def _require(self, rule_id: str, source: str) -> Rule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise RuleError(
                message=f"Unknown rule id: {rule_id}",
                source=source,
                suggested_action="List rules to find the id you meant.",
            )
        return rule


__all__ = ["DEFAULT_DOCUMENT_VERSION", "RuleBook", "dump_rule", "parse_rule"]
