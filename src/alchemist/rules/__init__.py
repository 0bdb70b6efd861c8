from alchemist.rules.rulebook import RuleBook, parse_rule
from alchemist.rules.suggestions import RuleSuggestion, suggest_rules

__all__ = ["RuleBook", "RuleSuggestion", "parse_rule", "suggest_rules"]
