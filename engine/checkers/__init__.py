"""Checkers rules engine and heuristic move selection."""
