"""Candidate profile store implementations."""
