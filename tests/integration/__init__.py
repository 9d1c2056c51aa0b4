"""Integration tests for the GoSnow recorder.

These tests exercise the wired recording stack end to end:
- Event delivery between the controller and its observers
- Recording, summarizing and persisting sessions to real files
- History trimming and shutdown
"""
