"""Test fixtures for ChatSim.

This package provides reusable test fixtures:
- core: Clock and scheduler factories with a fixed start time
- screens: Chat manager factory and a change recorder
- api: Fresh scheduler/chat pairs for route tests
"""
