"""
HTTP plumbing shared by the feature routers: response envelopes and
dependency injection helpers.
"""
