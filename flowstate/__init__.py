"""
FlowState: a personal focus-coaching assistant.

Check in with your energy and mood, get a matching intervention, run a
focus session against your current task and log how it went.
"""

__version__ = "0.1.0"
