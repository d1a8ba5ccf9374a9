"""Shared models, errors, personas and provider plumbing."""
