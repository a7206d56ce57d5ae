"""Deadline notification service."""
