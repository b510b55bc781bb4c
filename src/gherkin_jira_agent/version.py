"""
Version information for the Gherkin-to-Jira hierarchy agent.
"""
__version__ = "1.0.0"
