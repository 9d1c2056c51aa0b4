"""Logging setup for GoSnow recorder."""
