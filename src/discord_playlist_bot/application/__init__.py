"""
Application Layer

Orchestrates the playlist domain and the infrastructure adapters.

Structure:
- commands/: Chat command parsing and routing
- services/: The playback controller that serializes per-guild operations
- interfaces/: Port interfaces for infrastructure adapters
"""
