"""Pydantic request/response models for the staybook API."""
