"""CLI module for intex."""
