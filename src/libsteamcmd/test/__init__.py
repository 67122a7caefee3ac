"""Helpers for testing libsteamcmd and code built on it."""
