"""
boardsync: kanban board client backed by a remote fragment store

Optimistic board sync, PKCE token lifecycle and the cross-frame tool bridge
for the embedded chat agent.
"""

__version__ = "0.1.0"
