"""Fileset synchronization engine."""
