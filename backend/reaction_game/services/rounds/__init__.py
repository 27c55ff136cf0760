"""Reaction round domain services: state machine, timing and statistics.

This package contains pure(ish) domain logic that is driven by the socket
handlers and HTTP routes, keeping transport concerns separated from the
round lifecycle itself.
"""
