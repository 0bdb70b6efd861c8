from alchemist.normalize.headers import FIELD_ALIASES, HeaderMatch, suggest_header_mapping

__all__ = ["FIELD_ALIASES", "HeaderMatch", "suggest_header_mapping"]
