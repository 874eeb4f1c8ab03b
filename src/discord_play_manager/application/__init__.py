"""
Application Layer

Orchestrates the playback domain against its collaborators.

Structure:
- interfaces/: Port interfaces for the resolver, engine, queue, voice connection,
  audio sources and notifications
- services/: The per-guild play manager and the waits/timers it coordinates
"""
