"""
Infrastructure layer containing configuration and logging.
"""
