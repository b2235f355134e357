"""Application version information."""

# Semantic Versioning: MAJOR.MINOR.PATCH
# - MAJOR: Breaking changes to the HTTP contract
# - MINOR: New endpoints or fields
# - PATCH: Bug fixes, small improvements
VERSION = "1.2.0"
