"""
Core business logic for the video server.

This module is framework-agnostic - it doesn't import FastAPI or boto3.
The upload pipeline can be tested without a server or a bucket.
"""
