"""Test suite for the video asset service."""
