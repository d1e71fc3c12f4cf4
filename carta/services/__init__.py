"""
                        Services Module

Collaborators behind narrow interfaces, each with an in-memory
implementation for development and tests.

Services:
    - storage: remote mirror of menu and orders (mock / postgres + redis)
    - notifications: toasts and spoken announcements
    - voice: speech-to-text transcript webhook
"""
