"""
License Server - Test Suite

Structure:
- unit/: Unit tests for services and security utilities
- integration/: Integration tests for API endpoints
"""
