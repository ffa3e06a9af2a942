"""
Tests for Arbor

This package contains tests for:
- Growth graph, bud fates and the growth engine
- Local environment (perception, light, resource)
- Skeleton finalization, smoothing and tube meshing
- Policies, export and the command-line interface
"""
