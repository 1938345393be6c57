"""Persistence layer: engine setup and SQLModel repositories."""
