"""DynamoDB-backed distributed cache.

Stores opaque byte values under string keys in a single DynamoDB table, with
absolute and sliding expiration enforced on read.
"""
