"""Core orchestration and execution layer for haive."""
