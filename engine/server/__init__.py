"""HTTP front end for the checkers engine."""
