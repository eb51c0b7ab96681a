"""Business logic services used by handlers.

Services that need the database or the gateway are built lazily by
``bot_service.get_container`` so importing a handler never opens a
connection.
"""
