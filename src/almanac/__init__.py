"""Almanac - personal calendar with recurring events, overlap checks and notifications."""
