"""Pure helpers for ARNs and parameter paths."""
