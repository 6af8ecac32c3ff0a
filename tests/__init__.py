"""Test suite for the signal ranking engine."""
