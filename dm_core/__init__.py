"""
Direct messaging core: conversations, messages, reactions, blocks and live updates.
"""
__version__ = "1.0.0"
