"""
URL configuration for the block registry project.

The lookup engine has no HTTP surface of its own; it is reached through
``request.global_block_lookup`` set up by the global blocking middleware.
"""

urlpatterns: list = []
