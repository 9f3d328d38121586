"""Retry orchestration, query client and supporting plumbing."""
