"""Persistence for structured documents."""
