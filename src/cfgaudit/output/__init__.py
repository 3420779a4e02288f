"""Run reporters — terminal and JSON."""
