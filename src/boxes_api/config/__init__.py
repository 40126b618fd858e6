"""
Configuration management for the Boxes API.

Contains the Pydantic settings and the cached accessor used across
local-dev, aws-mock, and aws-prod deployment modes.
"""
