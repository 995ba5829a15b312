"""
Conversation bridge for wave_molly.

Streamed assistant text -> complete lines -> narrative or @@SEARCH command
-> candidate search -> results injected back into the conversation.

- Line reassembly and command extraction are pure and transport-independent
- One orchestrator per channel; commands run strictly in order
- Channel close drops pending text and in-flight results
"""
