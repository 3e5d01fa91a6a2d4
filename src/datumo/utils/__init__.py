"""Type/format checks and the validation engine."""
