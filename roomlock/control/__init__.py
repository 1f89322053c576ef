"""Compilation of canonical geometry into renderer control signals."""
