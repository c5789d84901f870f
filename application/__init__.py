"""
Application layer.

This package contains:
- exceptions.py: Typed errors raised by generation, backends and the pipeline
"""
