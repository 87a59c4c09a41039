"""
Tests package - Test suite for the node bootstrapper.

Contains:
- unit/: Unit tests for individual components, run against an in-memory
  fake of the Kubernetes API
"""
