"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Shape-type codes, header magic numbers, format limits
- exceptions: Custom exception hierarchy
"""
