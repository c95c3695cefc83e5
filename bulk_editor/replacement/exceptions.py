class RuleValidationError(Exception):
    """Raised when a replacement rule is malformed and must be skipped."""
