"""
RestroReach reference dashboard backend.

Serves the `admin-ajax` style aggregation endpoint the dashboard client polls,
plus a server-rendered host page built with the client's section renderers.
"""
