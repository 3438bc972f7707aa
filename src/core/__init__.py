"""
Core domain logic for file storage.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. Object naming and file descriptors can
be tested without a storage backend.
"""
