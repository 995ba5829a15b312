"""
HTTP surface for wave_molly: Bullhorn OAuth, candidate search, OpenAI
session/preview passthrough and server-hosted conversations.
"""
