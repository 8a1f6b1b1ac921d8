"""Configuration loading for haive."""
