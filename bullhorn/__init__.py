"""
Bullhorn backend access for wave_molly.

Credential store, freshness gate, REST client, query grammar and the
candidate search service. No conversation logic lives here.
"""
