"""
zippack Test Suite.

This package contains:
- unit/: Unit tests for individual components (writer, walk, config, report)
- integration/: Full packer runs and the CLI against temporary trees
"""
