"""Telegram client for the Havasi Reality Platform."""
