"""
Adapter layer for the Boxes API.

Contains the publish/subscribe notifier adapters (local, Pusher, SNS).
"""
