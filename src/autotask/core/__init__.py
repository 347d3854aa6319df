"""Core aggregate, ports, errors and prompts."""
