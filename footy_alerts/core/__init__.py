"""Core alerting primitives (stream events, notification kinds, and the notification policy).

Kept free of FastAPI and Redis concerns so the policy can be tested on plain game snapshots.
"""
