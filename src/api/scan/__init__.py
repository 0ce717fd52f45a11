"""Scan bounded context.

Forwards file and URL scan requests from API key holders to the remote
scanners and shapes their results.
"""
