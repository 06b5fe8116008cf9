"""Inference provider clients.

Each provider module implements the async job pattern:
  POST create job → handle → read status until terminal
"""
