"""Async building blocks shared by the services."""
