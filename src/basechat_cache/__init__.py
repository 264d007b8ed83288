"""Shared Redis cache handler for the basechat rendering layer."""

__version__ = "0.1.0"
