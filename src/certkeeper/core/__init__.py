"""Core cross-cutting concerns: logging, errors and region resolution."""
