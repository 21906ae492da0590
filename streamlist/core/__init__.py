"""
Core utilities shared across the streamlist API.

This package hosts the cross-cutting pieces: settings, logging setup and the
process lifecycle (shutdown-hook registry) that stores hook their emergency
flush into.
"""
