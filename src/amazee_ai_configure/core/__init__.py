"""
amazee-ai-configure Core Module

Contains the API client, session state and the configuration workflow.
"""
