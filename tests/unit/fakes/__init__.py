"""Test fake implementations for dependency injection testing."""
