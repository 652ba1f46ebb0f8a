"""
TabWriter writing-assistant backend.

Evidence extraction and ranking from secondary sources, scholarly research
recommendations, tone analysis and inline autocomplete, all driven by a
hosted text-completion model.
"""

__version__ = "0.1.0"
