"""Domain layer for LinkPage.

Contains the business rules for users, links and analytics.
This layer talks to storage only through the repository interfaces.
"""
