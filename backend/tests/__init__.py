"""Tests for the Tubely backend."""
