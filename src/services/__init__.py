"""Domain services for ticket assignment and lifecycle.

Import the concrete service modules directly, or build the whole set with
``services.bootstrap.create_services``.
"""
