"""Test suite for facekey.

Test Structure:
- unit/core/: library components (vocabulary, recorder, keys, artifacts,
  repository, unlock, sessions, classifier, config, logging)
- unit/cli/: command-line front end
"""
