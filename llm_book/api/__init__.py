"""Command surface used by hosts (editor extension, terminal)."""
